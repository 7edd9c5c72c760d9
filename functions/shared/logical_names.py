"""
Logical Names for Sheets and Columns
=====================================

These are the **code-facing** names used throughout the application.
They map to physical names/IDs via the workspace manifest.

Why Logical Names?
------------------
- Physical names in Smartsheet can change (user renames)
- Physical IDs are numbers (not readable in code)
- Logical names are stable, readable constants

Mapping Flow
------------
Code → Logical Name → Manifest → Physical ID → Smartsheet API

Example
-------
>>> from shared.logical_names import Sheet, Column
>>> from shared.manifest import get_manifest
>>>
>>> manifest = get_manifest()
>>> sheet_id = manifest.get_sheet_id(Sheet.RNC_LOG)
>>> column_id = manifest.get_column_id(Sheet.RNC_LOG, Column.RNC_LOG.RNC_NUMBER)

Naming Convention
-----------------
- Sheet names: UPPER_SNAKE_CASE (e.g., RNC_LOG, QUOTATIONS)
- Column names: UPPER_SNAKE_CASE (e.g., RNC_NUMBER, SLA_DUE)
"""


class Sheet:
    """Logical sheet names used in code."""

    # 01. Non-conformance
    RNC_LOG = "RNC_LOG"
    ACTION_PLAN_LOG = "ACTION_PLAN_LOG"
    LESSONS_LEARNED = "LESSONS_LEARNED"

    # 02. Inspection reports
    RAW_MATERIAL_REPORTS = "RAW_MATERIAL_REPORTS"
    DIMENSIONAL_REPORTS = "DIMENSIONAL_REPORTS"
    WELDING_REPORTS = "WELDING_REPORTS"
    LP_REPORTS = "LP_REPORTS"
    UT_REPORTS = "UT_REPORTS"
    PAINTING_REPORTS = "PAINTING_REPORTS"

    # 03. Metrology
    CALIBRATION_LOG = "CALIBRATION_LOG"

    # 04. Sales
    QUOTATIONS = "QUOTATIONS"
    ORDERS = "ORDERS"

    # 98. Audit
    USER_ACTION_LOG = "USER_ACTION_LOG"


class Column:
    """
    Logical column names organized by sheet.

    Usage:
        >>> Column.RNC_LOG.SLA_DUE
        'SLA_DUE'
    """

    class RNC_LOG:
        """01 RNC Log columns."""
        RNC_NUMBER = "RNC_NUMBER"
        TITLE = "TITLE"
        DESCRIPTION = "DESCRIPTION"
        SEVERITY = "SEVERITY"
        ORIGIN = "ORIGIN"
        ORDER_NUMBER = "ORDER_NUMBER"
        ITEM_CODE = "ITEM_CODE"
        SOURCE_REPORT_NUMBER = "SOURCE_REPORT_NUMBER"
        REPORTED_BY = "REPORTED_BY"
        ASSIGNED_TO = "ASSIGNED_TO"
        STATUS = "STATUS"
        SLA_DUE = "SLA_DUE"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class ACTION_PLAN_LOG:
        """01 Action Plan Log columns."""
        PLAN_NUMBER = "PLAN_NUMBER"
        RNC_NUMBER = "RNC_NUMBER"
        PROBLEM = "PROBLEM"
        WHYS = "WHYS"
        ROOT_CAUSE = "ROOT_CAUSE"
        ACTIONS = "ACTIONS"
        STATUS = "STATUS"
        CREATED_BY = "CREATED_BY"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class LESSONS_LEARNED:
        """01 Lessons Learned columns."""
        LESSON_NUMBER = "LESSON_NUMBER"
        TITLE = "TITLE"
        DESCRIPTION = "DESCRIPTION"
        CATEGORY = "CATEGORY"
        RECOMMENDATION = "RECOMMENDATION"
        RNC_NUMBER = "RNC_NUMBER"
        RECORD_DATE = "RECORD_DATE"
        CREATED_BY = "CREATED_BY"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class INSPECTION_REPORT:
        """02 columns shared by every inspection report sheet."""
        REPORT_NUMBER = "REPORT_NUMBER"
        REPORT_TYPE = "REPORT_TYPE"
        ORDER_NUMBER = "ORDER_NUMBER"
        ITEM_CODE = "ITEM_CODE"
        INSPECTOR = "INSPECTOR"
        INSPECTION_DATE = "INSPECTION_DATE"
        STANDARD = "STANDARD"
        RESULT = "RESULT"
        MEASUREMENTS = "MEASUREMENTS"
        FINDINGS = "FINDINGS"
        NOTES = "NOTES"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class CALIBRATION_LOG:
        """03 Calibration Log columns."""
        CALIBRATION_NUMBER = "CALIBRATION_NUMBER"
        EQUIPMENT_ID = "EQUIPMENT_ID"
        EQUIPMENT_NAME = "EQUIPMENT_NAME"
        CALIBRATION_DATE = "CALIBRATION_DATE"
        FREQUENCY_DAYS = "FREQUENCY_DAYS"
        NEXT_CALIBRATION_DATE = "NEXT_CALIBRATION_DATE"
        STATUS = "STATUS"
        RESULT = "RESULT"
        PARAMETERS = "PARAMETERS"
        CALIBRATED_BY = "CALIBRATED_BY"
        NOTES = "NOTES"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class QUOTATIONS:
        """04 Quotations columns."""
        QUOTATION_NUMBER = "QUOTATION_NUMBER"
        CUSTOMER_NAME = "CUSTOMER_NAME"
        STATUS = "STATUS"
        ITEMS = "ITEMS"
        TOTAL_VALUE = "TOTAL_VALUE"
        TOTAL_TAX = "TOTAL_TAX"
        GRAND_TOTAL = "GRAND_TOTAL"
        TOTAL_WEIGHT = "TOTAL_WEIGHT"
        VALIDITY_DATE = "VALIDITY_DATE"
        PAYMENT_TERMS = "PAYMENT_TERMS"
        ORDER_NUMBER = "ORDER_NUMBER"
        NOTES = "NOTES"
        CREATED_BY = "CREATED_BY"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class ORDERS:
        """04 Orders columns."""
        ORDER_NUMBER = "ORDER_NUMBER"
        QUOTATION_NUMBER = "QUOTATION_NUMBER"
        CUSTOMER_NAME = "CUSTOMER_NAME"
        CUSTOMER_PO = "CUSTOMER_PO"
        STATUS = "STATUS"
        ITEMS = "ITEMS"
        TOTAL_VALUE = "TOTAL_VALUE"
        DELIVERY_DATE = "DELIVERY_DATE"
        CREATED_BY = "CREATED_BY"
        CREATED_AT = "CREATED_AT"
        CLIENT_REQUEST_ID = "CLIENT_REQUEST_ID"

    class USER_ACTION_LOG:
        """98 User Action Log columns."""
        ACTION_ID = "ACTION_ID"
        TIMESTAMP = "TIMESTAMP"
        USER_ID = "USER_ID"
        ACTION_TYPE = "ACTION_TYPE"
        TARGET_TABLE = "TARGET_TABLE"
        TARGET_ID = "TARGET_ID"
        OLD_VALUE = "OLD_VALUE"
        NEW_VALUE = "NEW_VALUE"
        NOTES = "NOTES"


REPORT_SHEETS = (
    Sheet.RAW_MATERIAL_REPORTS,
    Sheet.DIMENSIONAL_REPORTS,
    Sheet.WELDING_REPORTS,
    Sheet.LP_REPORTS,
    Sheet.UT_REPORTS,
    Sheet.PAINTING_REPORTS,
)

# Mapping from Sheet logical name to Column class
SHEET_COLUMNS = {
    Sheet.RNC_LOG: Column.RNC_LOG,
    Sheet.ACTION_PLAN_LOG: Column.ACTION_PLAN_LOG,
    Sheet.LESSONS_LEARNED: Column.LESSONS_LEARNED,
    **{sheet: Column.INSPECTION_REPORT for sheet in REPORT_SHEETS},
    Sheet.CALIBRATION_LOG: Column.CALIBRATION_LOG,
    Sheet.QUOTATIONS: Column.QUOTATIONS,
    Sheet.ORDERS: Column.ORDERS,
    Sheet.USER_ACTION_LOG: Column.USER_ACTION_LOG,
}
