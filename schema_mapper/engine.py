"""Parallel resolution of table names, column datatypes and default values.

Datatypes and defaults are resolved one table per task on a bounded thread
pool. Every task hands its finished table to a single aggregator thread
through a queue; only the aggregator writes the result mapping. The first
failing table cancels the run and the caller gets that error and no mapping.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from time import monotonic
from typing import Any, Callable, Dict, Iterable, List, Optional

from .cascade import resolve_datatype, resolve_default
from .catalog.base import SourceCatalog
from .defaults import DEFAULT_SENSITIVE_TYPES, normalize_default
from .errors import (
    CatalogFetchError,
    MappingError,
    ResolutionCancelled,
    ResolutionLogicError,
    RuleStoreError,
)
from .models import (
    ColumnMetadata,
    ResolvedDatatypeMap,
    ResolvedDefaultMap,
    ResolvedMappings,
    ResolvedTableNameMap,
)
from .rules import DatatypeRules, DefaultRules, index_table_names, norm
from .store import RuleStore

logger = logging.getLogger(__name__)

TableWork = Callable[[str, List[ColumnMetadata]], Dict[str, str]]

_CLOSED = object()


class _Aggregator:
    """Owns the destination mapping; producers reach it only through ``inbox``."""

    def __init__(self, name: str):
        self.inbox: "queue.Queue[Any]" = queue.Queue()
        self._result: Dict[str, Dict[str, str]] = {}
        self._thread = threading.Thread(target=self._drain, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _drain(self) -> None:
        while True:
            item = self.inbox.get()
            if item is _CLOSED:
                return
            table, partial = item
            self._result[table] = partial

    def close(self) -> Dict[str, Dict[str, str]]:
        """Signal end of input, wait for the queue to drain and return the mapping.

        Must only be called once every producer has finished.
        """
        self.inbox.put(_CLOSED)
        self._thread.join()
        return self._result


class SchemaChange:
    """Resolves how one source schema's tables map onto the target engine."""

    def __init__(
        self,
        rule_store: RuleStore,
        catalog: SourceCatalog,
        source_schema: str,
        target_schema: str,
        tables: Iterable[str],
        threads: int = 4,
        source_db: str = "mysql",
        target_db: str = "oracle",
        sensitive_types: Iterable[str] = DEFAULT_SENSITIVE_TYPES,
    ):
        if threads < 1:
            raise ValueError(f"threads must be >= 1, got {threads}")
        self.rule_store = rule_store
        self.catalog = catalog
        self.source_schema = source_schema
        self.target_schema = target_schema
        # duplicates would make two tasks own the same key
        self.tables: List[str] = list(dict.fromkeys(tables))
        self.threads = threads
        self.source_db = source_db
        self.target_db = target_db
        self.sensitive_types = tuple(sensitive_types)

    def _load(self, what: str, fetch: Callable[..., Any], *args: Any) -> Any:
        try:
            return fetch(self.source_db, self.target_db, *args)
        except RuleStoreError:
            raise
        except Exception as e:
            raise RuleStoreError(
                f"could not load {what} for {self.source_db} -> {self.target_db} schema {self.source_schema}: {e}"
            ) from e

    def resolve_table_names(self) -> ResolvedTableNameMap:
        """Map every input table to its target name (upper-cased).

        Tables without a rule keep their own upper-cased name.
        """
        start = monotonic()
        rules = index_table_names(self._load(
            "table name rules", self.rule_store.table_name_rules, self.source_schema, self.target_schema
        ))
        result: ResolvedTableNameMap = {}
        for table in self.tables:
            key = norm(table)
            result[key] = rules.get(key, key)
        logger.info(
            f"Resolved table name mapping rules for schema {self.source_schema} "
            f"({len(result)} tables) in {monotonic() - start:.3f}s"
        )
        return result

    def resolve_datatypes(self) -> ResolvedDatatypeMap:
        """Resolve column datatypes: column > table > schema > builtin."""
        start = monotonic()
        schema_rules = self._load("schema datatype rules", self.rule_store.schema_datatype_rules, self.source_schema)
        table_rules = self._load("table datatype rules", self.rule_store.table_datatype_rules, self.source_schema)
        column_rules = self._load("column datatype rules", self.rule_store.column_datatype_rules, self.source_schema)
        builtin = self._load("builtin datatypes", self.rule_store.builtin_datatypes)
        rules = DatatypeRules.build(schema_rules, table_rules, column_rules, builtin)

        def work(table: str, columns: List[ColumnMetadata]) -> Dict[str, str]:
            return {c.name: resolve_datatype(table, c, rules) for c in columns}

        result = self._fan_out("datatype", work)
        logger.info(
            f"Resolved column datatype mapping rules for schema {self.source_schema} "
            f"({len(result)} tables) in {monotonic() - start:.3f}s"
        )
        return result

    def resolve_defaults(self) -> ResolvedDefaultMap:
        """Resolve column default values: column > global > normalized source literal."""
        start = monotonic()
        global_rules = self._load("global default rules", self.rule_store.global_default_rules)
        column_rules = self._load("column default rules", self.rule_store.column_default_rules, self.source_schema)
        rules = DefaultRules.build(global_rules, column_rules)
        sensitive = self.sensitive_types

        def work(table: str, columns: List[ColumnMetadata]) -> Dict[str, str]:
            return {
                c.name: resolve_default(table, c, normalize_default(c.native_type, c.raw_default, sensitive), rules)
                for c in columns
            }

        result = self._fan_out("default", work)
        logger.info(
            f"Resolved column default value mapping rules for schema {self.source_schema} "
            f"({len(result)} tables) in {monotonic() - start:.3f}s"
        )
        return result

    def resolve_all(self) -> ResolvedMappings:
        return ResolvedMappings(
            table_names=self.resolve_table_names(),
            datatypes=self.resolve_datatypes(),
            defaults=self.resolve_defaults(),
        )

    def _fan_out(self, label: str, work: TableWork) -> Dict[str, Dict[str, str]]:
        if not self.tables:
            return {}
        cancel = threading.Event()
        aggregator = _Aggregator(f"{label}-aggregator")
        aggregator.start()
        failure: Optional[BaseException] = None
        try:
            with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix=f"{label}-worker") as pool:
                futures = {
                    pool.submit(self._run_table, table, work, cancel, aggregator.inbox): table
                    for table in self.tables
                }
                for future in as_completed(futures):
                    if future.cancelled():
                        continue
                    err = future.exception()
                    if err is None or failure is not None:
                        continue
                    failure = err
                    cancel.set()
                    for pending in futures:
                        pending.cancel()
                    logger.warning(f"Resolving {label} mapping failed for table {futures[future]}: {err}")
        finally:
            # runs after the pool has joined every worker, on success and failure alike
            result = aggregator.close()
        if failure is not None:
            raise failure
        # completion order varies with scheduling; report in input order
        return {table: result[table] for table in self.tables}

    def _run_table(
        self,
        table: str,
        work: TableWork,
        cancel: threading.Event,
        inbox: "queue.Queue[Any]",
    ) -> None:
        if cancel.is_set():
            return
        try:
            columns = self.catalog.table_columns(self.source_schema, table, cancel)
        except ResolutionCancelled:
            return
        except MappingError:
            raise
        except Exception as e:
            raise CatalogFetchError(f"could not fetch columns from {self.source_schema}: {e}", table=table) from e
        try:
            partial = work(table, columns)
        except ResolutionLogicError as e:
            if e.table:
                raise
            raise ResolutionLogicError(str(e), table=table) from e
        except MappingError:
            raise
        except Exception as e:
            raise ResolutionLogicError(f"could not resolve columns: {e}", table=table) from e
        if cancel.is_set():
            return
        inbox.put((table, partial))
