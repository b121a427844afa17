"""Tests for builtin mapping, rule indexing and cascade resolution."""

import pytest

from conftest import col
from schema_mapper.builtin import map_builtin
from schema_mapper.cascade import resolve_datatype, resolve_default
from schema_mapper.errors import ResolutionLogicError
from schema_mapper.models import (
    BuiltinDatatype,
    ColumnDatatypeRule,
    ColumnDefaultRule,
    GlobalDefaultRule,
    SchemaDatatypeRule,
    TableDatatypeRule,
    TableNameRule,
)
from schema_mapper.rules import CompiledBuiltin, DatatypeRules, DefaultRules, index_table_names


# ---------------------------------------------------------------------------
# Column origin type
# ---------------------------------------------------------------------------

class TestOriginType:

    def test_precision_and_scale(self):
        assert col("c", "decimal", precision=10, scale=2).origin_type() == "DECIMAL(10,2)"

    def test_precision_only(self):
        assert col("c", "decimal", precision=10).origin_type() == "DECIMAL(10)"

    def test_length(self):
        assert col("c", "varchar", length=255).origin_type() == "VARCHAR(255)"

    def test_no_attributes(self):
        assert col("c", " text ").origin_type() == "TEXT"

    def test_datetime_precision(self):
        assert col("c", "datetime", datetime_precision=6).origin_type() == "DATETIME(6)"
        assert col("c", "timestamp", datetime_precision=0).origin_type() == "TIMESTAMP"

# ---------------------------------------------------------------------------
# Builtin mapper
# ---------------------------------------------------------------------------

class TestBuiltinMapper:

    def _builtin(self, *entries):
        return DatatypeRules.build(builtin=entries).builtin

    def test_plain_entry(self):
        builtin = self._builtin(BuiltinDatatype("DECIMAL", "NUMBER"))
        assert map_builtin(col("c", "DECIMAL", precision=10, scale=2), builtin) == "NUMBER"

    def test_case_insensitive_source_type(self):
        builtin = self._builtin(BuiltinDatatype("decimal", "number"))
        assert map_builtin(col("c", "Decimal"), builtin) == "NUMBER"

    def test_placeholders_rendered(self):
        builtin = self._builtin(BuiltinDatatype("DECIMAL", "NUMBER({precision},{scale})"))
        assert map_builtin(col("c", "DECIMAL", precision=12, scale=4), builtin) == "NUMBER(12,4)"

    def test_first_matching_pattern_wins(self):
        builtin = self._builtin(
            BuiltinDatatype("VARCHAR", "VARCHAR2({length} CHAR)", r"\((\d{1,3}|[1-3]\d{3}|4000)\)"),
            BuiltinDatatype("VARCHAR", "CLOB"),
        )
        assert map_builtin(col("c", "VARCHAR", length=255), builtin) == "VARCHAR2(255 CHAR)"
        assert map_builtin(col("c", "VARCHAR", length=8000), builtin) == "CLOB"

    def test_no_match_echoes_origin_type(self):
        builtin = self._builtin(BuiltinDatatype("INT", "NUMBER(10,0)"))
        assert map_builtin(col("c", "geometry"), builtin) == "GEOMETRY"
        assert map_builtin(col("c", "bit", length=1), builtin) == "BIT(1)"

    def test_missing_attribute_is_logic_error(self):
        builtin = self._builtin(BuiltinDatatype("DECIMAL", "NUMBER({precision},{scale})"))
        with pytest.raises(ResolutionLogicError, match="precision"):
            map_builtin(col("c", "DECIMAL"), builtin)

    def test_unknown_placeholder_rejected_at_index_time(self):
        with pytest.raises(ResolutionLogicError, match="unknown placeholder"):
            DatatypeRules.build(builtin=[BuiltinDatatype("DECIMAL", "NUMBER({digits})")])

    @pytest.mark.parametrize("target", ["NUMBER({precision:q})", "VARCHAR2({length!z})", "NUMBER({precision:>5})"])
    def test_format_spec_rejected_at_index_time(self, target):
        with pytest.raises(ResolutionLogicError, match="format spec or conversion"):
            DatatypeRules.build(builtin=[BuiltinDatatype("DECIMAL", target)])

    def test_render_failure_is_logic_error(self):
        entry = CompiledBuiltin("NUMBER({precision:q})", None, ("precision",))
        with pytest.raises(ResolutionLogicError, match="cannot be rendered"):
            map_builtin(col("c", "DECIMAL", precision=10, scale=2), {"DECIMAL": (entry,)})

    def test_datetime_precision_rendered(self):
        builtin = self._builtin(
            BuiltinDatatype("DATETIME", "TIMESTAMP({datetime_precision})", r"\([1-6]\)"),
            BuiltinDatatype("DATETIME", "DATE"),
        )
        assert map_builtin(col("c", "DATETIME", datetime_precision=6), builtin) == "TIMESTAMP(6)"
        assert map_builtin(col("c", "DATETIME", datetime_precision=0), builtin) == "DATE"
        assert map_builtin(col("c", "DATETIME"), builtin) == "DATE"

    def test_invalid_pattern_rejected_at_index_time(self):
        with pytest.raises(ResolutionLogicError, match="invalid attributes pattern"):
            DatatypeRules.build(builtin=[BuiltinDatatype("DECIMAL", "NUMBER", r"\((\d+")])


# ---------------------------------------------------------------------------
# Rule indexes
# ---------------------------------------------------------------------------

class TestRuleIndexes:

    def test_table_names_upper_cased(self):
        index = index_table_names([TableNameRule("orders", "t_orders")])
        assert index == {"ORDERS": "T_ORDERS"}

    def test_first_rule_wins(self):
        rules = DatatypeRules.build(schema_rules=[
            SchemaDatatypeRule("DECIMAL", "NUMBER(38,10)"),
            SchemaDatatypeRule("decimal", "FLOAT"),
        ])
        assert rules.schema == {"DECIMAL": "NUMBER(38,10)"}

    def test_empty_target_ignored(self):
        rules = DatatypeRules.build(table_rules=[TableDatatypeRule("orders", "INT", "")])
        assert rules.table == {}


# ---------------------------------------------------------------------------
# Datatype cascade
# ---------------------------------------------------------------------------

AMOUNT = col("amount", "DECIMAL", precision=10, scale=2)
BUILTIN = [BuiltinDatatype("DECIMAL", "NUMBER")]


class TestDatatypeCascade:

    def test_fallback_to_builtin(self):
        rules = DatatypeRules.build(builtin=BUILTIN)
        assert resolve_datatype("orders", AMOUNT, rules) == "NUMBER"

    def test_column_rule_beats_table_and_schema(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("DECIMAL", "BINARY_DOUBLE")],
            table_rules=[TableDatatypeRule("orders", "DECIMAL", "FLOAT")],
            column_rules=[ColumnDatatypeRule("orders", "amount", "DECIMAL", "number(10,2)")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "NUMBER(10,2)"

    def test_table_rule_beats_schema(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("DECIMAL", "BINARY_DOUBLE")],
            table_rules=[TableDatatypeRule("ORDERS", "DECIMAL", "FLOAT")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "FLOAT"

    def test_schema_rule_applies_without_table_rule(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("DECIMAL", "BINARY_DOUBLE")],
            table_rules=[TableDatatypeRule("customers", "DECIMAL", "FLOAT")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "BINARY_DOUBLE"

    def test_table_rule_when_column_rule_targets_other_column(self):
        rules = DatatypeRules.build(
            table_rules=[TableDatatypeRule("orders", "DECIMAL", "FLOAT")],
            column_rules=[ColumnDatatypeRule("orders", "total", "DECIMAL", "NUMBER(20,4)")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "FLOAT"

    def test_full_origin_type_matches(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("decimal(10,2)", "NUMBER(12,2)")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "NUMBER(12,2)"

    def test_rule_keyed_on_datetime_precision(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("DATETIME(6)", "TIMESTAMP(9)")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", col("c", "DATETIME", datetime_precision=6), rules) == "TIMESTAMP(9)"
        assert resolve_datatype("orders", col("c", "DATETIME", datetime_precision=3), rules) == "DATETIME(3)"

    def test_full_origin_type_preferred_over_bare_name(self):
        rules = DatatypeRules.build(
            schema_rules=[
                SchemaDatatypeRule("DECIMAL", "FLOAT"),
                SchemaDatatypeRule("DECIMAL(10,2)", "NUMBER(12,2)"),
            ],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "NUMBER(12,2)"

    def test_rule_equal_to_base_falls_through(self):
        rules = DatatypeRules.build(
            table_rules=[TableDatatypeRule("orders", "DECIMAL", "FLOAT")],
            column_rules=[ColumnDatatypeRule("orders", "amount", "DECIMAL", "number")],
            builtin=BUILTIN,
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "FLOAT"

    @pytest.mark.parametrize("table_rules,schema_rules", [
        ([], []),
        ([TableDatatypeRule("orders", "DECIMAL", "FLOAT")], []),
        ([], [SchemaDatatypeRule("DECIMAL", "BINARY_DOUBLE")]),
        ([TableDatatypeRule("orders", "DECIMAL", "FLOAT")], [SchemaDatatypeRule("DECIMAL", "BINARY_DOUBLE")]),
    ])
    def test_no_column_rules_matches_general_algorithm(self, table_rules, schema_rules):
        without = DatatypeRules.build(schema_rules, table_rules, [], BUILTIN)
        # a column rule for an unrelated column forces the general path
        general = DatatypeRules.build(
            schema_rules, table_rules, [ColumnDatatypeRule("other", "x", "INT", "NUMBER(1)")], BUILTIN
        )
        assert resolve_datatype("orders", AMOUNT, without) == resolve_datatype("orders", AMOUNT, general)

    def test_result_upper_cased(self):
        rules = DatatypeRules.build(
            schema_rules=[SchemaDatatypeRule("DECIMAL", "binary_double")],
            builtin=[BuiltinDatatype("DECIMAL", "number")],
        )
        assert resolve_datatype("orders", AMOUNT, rules) == "BINARY_DOUBLE"


# ---------------------------------------------------------------------------
# Default value cascade
# ---------------------------------------------------------------------------

CREATED = col("created_at", "DATETIME", default="CURRENT_TIMESTAMP")


class TestDefaultCascade:

    def test_raw_literal_when_no_rule(self):
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", DefaultRules.build()) == "CURRENT_TIMESTAMP"

    def test_global_rule_case_insensitive(self):
        rules = DefaultRules.build(global_rules=[GlobalDefaultRule("", "current_timestamp", "SYSDATE")])
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", rules) == "SYSDATE"

    def test_typed_global_rule_beats_wildcard(self):
        rules = DefaultRules.build(global_rules=[
            GlobalDefaultRule("", "CURRENT_TIMESTAMP", "SYSDATE"),
            GlobalDefaultRule("DATETIME", "CURRENT_TIMESTAMP", "SYSTIMESTAMP"),
        ])
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", rules) == "SYSTIMESTAMP"

    def test_typed_global_rule_ignores_other_types(self):
        rules = DefaultRules.build(global_rules=[GlobalDefaultRule("TIMESTAMP", "CURRENT_TIMESTAMP", "SYSTIMESTAMP")])
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", rules) == "CURRENT_TIMESTAMP"

    def test_column_rule_beats_global(self):
        rules = DefaultRules.build(
            global_rules=[GlobalDefaultRule("", "CURRENT_TIMESTAMP", "SYSDATE")],
            column_rules=[ColumnDefaultRule("ORDERS", "CREATED_AT", "SYSTIMESTAMP")],
        )
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", rules) == "SYSTIMESTAMP"

    def test_column_rule_can_clear_default(self):
        rules = DefaultRules.build(column_rules=[ColumnDefaultRule("orders", "created_at", "")])
        assert resolve_default("orders", CREATED, "CURRENT_TIMESTAMP", rules) == ""
