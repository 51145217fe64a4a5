"""Tests for per-type step descriptions."""

import pytest

from stepgraph.core.descriptors import (
    DescriptorContext,
    StepDescriptorSynthesizer,
    is_retained,
)
from stepgraph.core.expressions import DEFAULT_CONDITION, Rule
from stepgraph.core.modes import Mode
from stepgraph.core.nodes import FieldDefinition, StepOutput
from stepgraph.core.records import StepRecord
from stepgraph.core.registry import Registry, VariableEntry


def describe(raw, mode=Mode.TECHNICAL, registry=None, children=()):
    record = StepRecord(raw)
    record.children.extend(StepRecord(child) for child in children)
    context = DescriptorContext(mode=mode, registry=registry or Registry())
    return StepDescriptorSynthesizer(context).describe(record, 0)


class TestGeneralDescription:
    """Test fields every node gets."""

    def test_unknown_type_falls_through(self, make_step):
        node = describe(
            make_step(1, "FrobnicateWidget", "Odd Step", storage={"X": "1"})
        )

        assert node.context == "FrobnicateWidget"
        assert node.flow_label == "FrobnicateWidget"
        assert node.details == []
        assert node.output is None
        assert node.table_data is None

    def test_node_id_is_sanitized(self, make_step):
        node = describe(make_step(1, "RunTableQuery", "Load #1 (A)"))

        assert node.node_id == "RunTableQuery_Load__1__A_"

    def test_inactive_step_is_marked_disabled(self, make_step):
        node = describe(make_step(1, "RunTableQuery", "Old", IsActive="false"))

        assert node.is_active is False
        assert node.phase == "RunTableQuery [DISABLED]"

    def test_sort_order_and_extended_criteria(self, make_step):
        node = describe(
            make_step(
                1,
                "RunTableQuery",
                "Read Orders",
                storage={
                    "TableName": "Orders",
                    "SortColumns": {
                        "SortColumnItem": [
                            {"ColumnName": "Name", "SortDirection": "ASC"},
                            {"ColumnName": "Id"},
                        ]
                    },
                    "ExtendedWhere": "Amount > 10",
                },
            )
        )

        assert node.details == [
            "Sort Order: Name ASC, Id",
            "Source Table: Orders",
            "Extended Criteria: Amount > 10",
        ]
        assert node.context == "Reads internal Orders"


class TestQueryAndTableSteps:
    """Test tabular projections."""

    def test_join_table(self, make_step):
        raw = make_step(
            1,
            "JoinTable",
            "Join Orders",
            storage={
                "JoinTable1": "Orders",
                "JoinTable2": "Customers",
                "OutputTableName": "OrderCustomers",
                "JoinType": "Inner",
                "Joins": {
                    "JoinItemDef": {
                        "JoinTable1": "Orders",
                        "JoinColumn1": "CustId",
                        "JoinType": "Inner",
                        "JoinTable2": "Customers",
                        "JoinColumn2": "Id",
                    }
                },
            },
        )

        node = describe(raw)

        assert node.context == "Joins Orders with Customers"
        assert node.details == ["Join Type: Inner"]
        assert node.headers == ["Left", "Condition"]
        assert node.table_data[0].cells == ["Orders.CustId", "Inner Customers.Id"]
        assert node.output == StepOutput(kind="TABLE", name="OrderCustomers")
        assert node.inputs == ["Orders", "Customers"]
        assert node.outputs == ["OrderCustomers"]
        assert describe(raw, Mode.BUSINESS).context == "Combine with Customers"

    def test_join_without_output_name_has_no_output(self, make_step):
        node = describe(make_step(1, "JoinTable", "Join", storage={"JoinTable1": "A"}))

        assert node.output is None

    def test_calculated_column_rules(self, make_step):
        node = describe(
            make_step(
                1,
                "AddColumn",
                "Calc Tier",
                storage={
                    "TableName": "Customers",
                    "Columns": {
                        "ColumnItemDef": [
                            {
                                "ColumnName": "Tier",
                                "Expression": "IIF(Sales > 100, 'Gold', 'Silver')",
                            },
                            {
                                "ColumnName": "Double",
                                "Expression": "Sales * 2",
                                "ColumnType": "Decimal",
                            },
                        ]
                    },
                },
            )
        )

        assert node.headers == ["Field", "Formula", "Type"]
        assert node.table_data[0].rules == [
            Rule("Sales > 100", "'Gold'"),
            Rule(DEFAULT_CONDITION, "'Silver'"),
        ]
        assert node.table_data[1].cells == ["Double", "Sales * 2", "Decimal"]
        assert node.table_data[1].rules is None

    def test_create_table(self, make_step):
        raw = make_step(
            1,
            "CreateTable",
            "Create Stage",
            OutputTableDefinition={
                "TableName": "Stage",
                "Columns": {"ColumnItem": [{"ColumnName": "Id", "ColumnType": "Int"}]},
            },
        )

        node = describe(raw)

        assert node.context == "Creates table Stage"
        assert node.flow_label == "Create Table: Stage"
        assert node.output == StepOutput(kind="TABLE", name="Stage")
        assert node.table_data[0].cells == ["Id", "Int"]
        assert node.data_dictionary == [FieldDefinition(name="Id", data_type="Int")]

    @pytest.mark.parametrize(
        "code, label",
        [
            ("IU", "Insert or Update"),
            ("I", "Insert Only"),
            ("R", "Replace"),
            ("XX", "XX"),
        ],
    )
    def test_import_mode_labels(self, make_step, code, label):
        node = describe(
            make_step(
                1,
                "ImportWarehouseData",
                "Publish",
                storage={"OutputTableName": "DW_Sales", "ImportOption": code},
            )
        )

        assert f"Mode: {label}" in node.details
        assert node.flow_label == "Save to Warehouse: DW_Sales"
        assert node.output == StepOutput(kind="WAREHOUSE", name="DW_Sales")

    def test_dynamic_fields_data_dictionary(self, make_step):
        node = describe(
            make_step(
                1,
                "RunDatasourceQuery",
                "Pull CRM",
                storage={
                    "DynamicFields": {
                        "Field": {
                            "@_Name": "Amount",
                            "FieldDef": {
                                "ValueObjectFieldDefinitionOfString": {
                                    "FieldType": "Decimal",
                                    "MaxLength": "10",
                                }
                            },
                            "Description": {"string": "Order amount"},
                        }
                    }
                },
            )
        )

        assert node.data_dictionary == [
            FieldDefinition("Amount", "Decimal", "10", "Order amount")
        ]


class TestControlFlowSteps:
    """Test loops, branches and variables."""

    def test_branch_with_long_condition(self, make_step):
        expression = "IIF(Amount > 1000 AND Region = 'NZ', 'Large NZ order', 'Other')"
        node = describe(
            make_step(
                1,
                "Branch",
                "Large?",
                IsActive="false",
                storage={"Expression": expression},
            )
        )

        assert node.is_active is True
        assert node.phase == "Branch"
        assert node.flow_label == f"If {expression}"
        assert node.details == [f"Full Condition: {expression}"]
        assert node.logic_rules[0] == Rule(
            "Amount > 1000 AND Region = 'NZ'", "'Large NZ order'"
        )

    def test_branch_with_short_condition(self, make_step):
        node = describe(
            make_step(1, "Branch", "Big?", storage={"Expression": "Amount > 10"})
        )

        assert node.details == []
        assert node.logic_rules is None

    def test_loop(self, make_step):
        raw = make_step(
            1,
            "Loop",
            "Each Region",
            storage={"InputVariable": "Regions", "StartValue": "1", "EndValue": "5"},
        )

        node = describe(
            raw, children=[make_step(2, "RunTableQuery", "Fetch", parent=1)]
        )

        assert node.details == ["Iterator: Regions", "Range: 1 to 5"]
        assert node.output == StepOutput(kind="ITERATOR", name="Regions")
        assert node.flow_label == "For each Regions"
        assert node.smart_description == "Fetching detailed data for each item"
        assert describe(raw).smart_description == "Processing items in batch"

    def test_variable_smart_description_lists_usages(self, make_step):
        registry = Registry()
        registry.variables["Cutoff"] = VariableEntry(
            name="Cutoff",
            value="1",
            declared_by="Set Cutoff",
            used_in=["a", "b", "c", "d"],
        )

        node = describe(
            make_step(
                1,
                "SetVariable",
                "Set Cutoff",
                storage={"VariableName": "Cutoff", "VariableValue": "IIF(x, 1, 2)"},
            ),
            registry=registry,
        )

        assert node.smart_description == "Used in: a, b, c..."
        assert node.flow_label == "Cutoff = IIF(x, 1, 2)"
        assert node.output == StepOutput(kind="VAR", name="Cutoff")
        assert node.table_data[0].cells == ["Cutoff", "IIF(x, 1, 2)", "Variable"]
        assert node.logic_rules == [Rule("x", "1"), Rule(DEFAULT_CONDITION, "2")]


class TestIOSteps:
    """Test file, email, script and datasource steps."""

    def test_email_label_and_details(self, make_step):
        node = describe(
            make_step(
                1,
                "SendEmail",
                "Notify",
                storage={
                    "SubjectLine": "Customer load complete for today",
                    "SendTo": "ops@example.com",
                    "SendEmailAttachmentConfigItems": {
                        "SendEmailAttachmentConfigItem": [
                            {"FileMask": "*.csv"},
                            {"FileMask": "*.xlsx"},
                        ]
                    },
                },
            )
        )

        assert node.flow_label == 'Email: "Customer load comple..." (+2 att)'
        assert node.context == "Send Email to ops@example.com"
        assert node.details == [
            "Subject: Customer load complete for today",
            "To: ops@example.com",
            "Attachment: *.csv",
            "Attachment: *.xlsx",
        ]

    def test_email_without_subject(self, make_step):
        node = describe(
            make_step(1, "SendEmail", "Notify", storage={"SendTo": "a@b.c"})
        )

        assert node.flow_label == 'Email: "No Subject"'

    def test_load_text_file(self, make_step):
        raw = make_step(
            1,
            "LoadTextFile",
            "Read Feed",
            storage={"FileName": "C:\\feeds\\daily.txt", "FileEncoding": "UTF-8"},
        )

        node = describe(raw)

        assert node.flow_label == "Load Text: daily.txt"
        assert node.outputs == ["DATA"]
        assert node.details == ["File: C:\\feeds\\daily.txt", "Encoding: UTF-8"]
        assert describe(raw, Mode.BUSINESS).context == "Read daily.txt"

    def test_export_to_excel(self, make_step):
        node = describe(
            make_step(
                1,
                "ExportToExcel",
                "Export Tiers",
                storage={
                    "ExportMemoryTableName": "Tiers",
                    "FileName": "reports/tiers.xlsx",
                    "FileLocation": "Shared",
                    "SheetName": "Summary",
                    "UpdateExistingSheet": "True",
                },
            )
        )

        assert node.context == "Export Tiers to Excel"
        assert node.flow_label == "Export to Excel: tiers.xlsx"
        assert node.details == [
            "File: reports/tiers.xlsx (Shared)",
            "Sheet: Summary",
            "Mode: Append to Sheet",
        ]

    def test_export_without_file_name(self, make_step):
        node = describe(make_step(1, "ExportToExcel", "Export"))

        assert node.flow_label == "Export to Excel: File"
        assert node.details == []

    def test_sql_preview_is_technical_only(self, make_step):
        raw = make_step(
            1,
            "RunSqlStatement",
            "Fix Up",
            storage={"SqlStatement": "UPDATE t SET " + "x" * 300},
        )

        technical = describe(raw)
        business = describe(raw, Mode.BUSINESS)

        assert len(technical.details) == 1
        assert technical.details[0].startswith("SQL: UPDATE t SET x")
        assert technical.details[0].endswith("...")
        assert len(technical.details[0]) == len("SQL: ") + 200 + 3
        assert business.details == []
        assert business.context == "Run a database update"

    def test_datasource_parameters_are_technical_only(self, make_step):
        raw = make_step(
            1,
            "RunDatasourceQuery",
            "Pull CRM",
            storage={
                "DataSource": {"Description": "CRM"},
                "OutputTableName": "Leads",
                "DataSourceParameters": {
                    "DataSourceParameterItem": {
                        "DataSourceParameterName": "from",
                        "DataSourceParameterValue": "2024",
                    }
                },
            },
        )

        technical = describe(raw)

        assert technical.context == "CRM ➔ Leads"
        assert technical.flow_label == "CRM ➔ Leads"
        assert technical.details == ["Source: CRM", "Param: from = 2024"]
        assert describe(raw, Mode.BUSINESS).details == ["Source: CRM"]

    def test_query_filters_and_exists_logic(self, make_step):
        node = describe(
            make_step(
                1,
                "RunDirectQuery",
                "Get Orders",
                storage={
                    "TableName": "Orders",
                    "Criteria": {
                        "CriteriaValues": {
                            "CriteriaValue": {
                                "ColumnId": "Status",
                                "Operator": "Equals",
                                "Value1": "Open",
                            }
                        }
                    },
                    "ExistsFilters": {
                        "ExistsFilterItem": {
                            "FilterTableName": "Payments",
                            "Links": {
                                "ExistsFilterItemLink": {
                                    "FieldName": "OrderId", "ColumnName": "Id"
                                }
                            },
                        }
                    },
                },
            )
        )

        assert node.details == ["Source Table: Orders", "Filter: Status equals Open"]
        assert node.exists_logic == ["EXISTS IN Payments WHERE OrderId = Id"]
        assert node.flow_label == "Query: Orders ➔ Orders"


class TestRetention:
    """Test the business-mode filter."""

    @pytest.mark.parametrize(
        "step_type, active, business_kept",
        [
            ("PurgeTable", True, False),
            ("CreateTable", True, False),
            ("DeleteTable", True, False),
            ("RunTableQuery", False, False),
            ("RunTableQuery", True, True),
            ("Loop", False, True),
            ("Group", False, True),
        ],
    )
    def test_is_retained(self, make_step, step_type, active, business_kept):
        record = StepRecord(make_step(1, step_type, "S", IsActive=active))

        assert is_retained(record, Mode.BUSINESS) is business_kept
        assert is_retained(record, Mode.TECHNICAL) is True
