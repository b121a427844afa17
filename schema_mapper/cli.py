"""
schema-mapper: resolve target table names, column datatypes and default values.

Usage:
  schema-mapper init-meta [--source-db mysql --target-db oracle]
  schema-mapper resolve --schema app [--tables t1 t2] [--schema-json schema.json] [--output out.json]
  schema-mapper serve [--host 0.0.0.0 --port 8000]

Connection URLs come from SOURCE_DATABASE_URL and META_DATABASE_URL (.env or Key Vault).
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy import inspect

from .catalog import JsonSourceCatalog, catalog_for_engine
from .config import Settings, make_engine
from .engine import SchemaChange
from .errors import MappingError
from .store import SqlRuleStore

logger = logging.getLogger(__name__)


def cmd_init_meta(args: argparse.Namespace, settings: Settings) -> int:
    store = SqlRuleStore(make_engine(args.meta_url or settings.require("meta_database_url")))
    store.create_tables()
    inserted = store.seed_builtin_rules(args.source_db or settings.source_db_type,
                                        args.target_db or settings.target_db_type)
    print(f"Metadata tables ready ({inserted} builtin rows inserted)")
    return 0


def _resolve_tables(args: argparse.Namespace, settings: Settings, schema: str):
    if args.schema_json:
        catalog = JsonSourceCatalog.from_path(args.schema_json)
        tables: List[str] = args.tables or catalog.table_names()
        return catalog, tables
    engine = make_engine(args.source_url or settings.require("source_database_url"))
    catalog = catalog_for_engine(engine)
    tables = args.tables or inspect(engine).get_table_names(schema=schema)
    return catalog, tables


def cmd_resolve(args: argparse.Namespace, settings: Settings) -> int:
    schema = args.schema or settings.source_schema
    if not schema:
        raise SystemExit("--schema or SOURCE_SCHEMA is required")
    target_schema = args.target_schema or settings.target_schema or schema.upper()
    store = SqlRuleStore(make_engine(args.meta_url or settings.require("meta_database_url")))
    catalog, tables = _resolve_tables(args, settings, schema)

    change = SchemaChange(
        rule_store=store,
        catalog=catalog,
        source_schema=schema,
        target_schema=target_schema,
        tables=tables,
        threads=args.threads or settings.threads,
        source_db=args.source_db or settings.source_db_type,
        target_db=args.target_db or settings.target_db_type,
        sensitive_types=settings.sensitive_types,
    )
    try:
        mappings = change.resolve_all()
    except MappingError as e:
        logger.error(f"Mapping resolution failed: {e}")
        return 1

    payload = json.dumps(mappings.to_dict(), indent=2, sort_keys=False)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {args.output} ({len(tables)} tables)")
    else:
        print(payload)
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run("schema_mapper.api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--meta-url", default=None, help="Rule store database URL (defaults to META_DATABASE_URL)")
    p.add_argument("--source-db", default=None, help="Source database type (defaults to SOURCE_DB_TYPE or mysql)")
    p.add_argument("--target-db", default=None, help="Target database type (defaults to TARGET_DB_TYPE or oracle)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init-meta", help="Create rule tables and seed builtin rules")
    p_init.set_defaults(func=cmd_init_meta)

    p_res = sub.add_parser("resolve", help="Resolve table, datatype and default value mappings")
    p_res.add_argument("--schema", default=None, help="Source schema (defaults to SOURCE_SCHEMA)")
    p_res.add_argument("--target-schema", default=None, help="Target schema (defaults to TARGET_SCHEMA)")
    p_res.add_argument("--tables", nargs="*", default=None, help="Tables to resolve (default: all tables in schema)")
    p_res.add_argument("--threads", type=int, default=None, help="Concurrent table workers (defaults to MAPPER_THREADS)")
    p_res.add_argument("--source-url", default=None, help="Source database URL (defaults to SOURCE_DATABASE_URL)")
    p_res.add_argument("--schema-json", default=None, help="Read columns from a schema.json file instead of the source database")
    p_res.add_argument("--output", default=None, help="Output JSON path (stdout when omitted)")
    p_res.set_defaults(func=cmd_resolve)

    p_srv = sub.add_parser("serve", help="Run the mapping API with uvicorn")
    p_srv.add_argument("--host", default="127.0.0.1")
    p_srv.add_argument("--port", type=int, default=8000)
    p_srv.add_argument("--reload", action="store_true")
    p_srv.set_defaults(func=cmd_serve)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args, Settings.from_env())


if __name__ == "__main__":
    sys.exit(main())
