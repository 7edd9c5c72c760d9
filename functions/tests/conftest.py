"""
Pytest Configuration and Fixtures for Quality Function Tests

This file provides:
- Mock workspace manifest with the quality sheets and columns
- In-memory Smartsheet storage and client that simulate the real API
- Test data factories for request payloads
- HTTP request mocking for Azure Functions
"""

import pytest
import json
import uuid
from datetime import date
from typing import Dict, Any, List, Optional
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============== Custom Pytest Markers ==============

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual modules")
    config.addinivalue_line("markers", "integration: Integration tests")


# ============== Mock Manifest ==============

REPORT_COLUMNS = {
    "REPORT_NUMBER": "Report Number",
    "REPORT_TYPE": "Report Type",
    "ORDER_NUMBER": "Order Number",
    "ITEM_CODE": "Item Code",
    "INSPECTOR": "Inspector",
    "INSPECTION_DATE": "Inspection Date",
    "STANDARD": "Standard",
    "RESULT": "Result",
    "MEASUREMENTS": "Measurements",
    "FINDINGS": "Findings",
    "NOTES": "Notes",
    "CREATED_AT": "Created At",
    "CLIENT_REQUEST_ID": "Client Request ID",
}


def _columns(base_id: int, names: Dict[str, str]) -> Dict[str, Dict]:
    return {
        logical: {"id": base_id + i, "name": physical}
        for i, (logical, physical) in enumerate(names.items(), start=1)
    }


class MockWorkspaceManifest:
    """Mock workspace manifest for tests."""

    def __init__(self):
        self._sheets = {
            "RNC_LOG": {"id": 1001, "name": "01 RNC Log"},
            "ACTION_PLAN_LOG": {"id": 1002, "name": "01 Action Plans"},
            "LESSONS_LEARNED": {"id": 1003, "name": "01 Lessons Learned"},
            "RAW_MATERIAL_REPORTS": {"id": 1004, "name": "02 Raw Material Reports"},
            "DIMENSIONAL_REPORTS": {"id": 1005, "name": "02 Dimensional Reports"},
            "WELDING_REPORTS": {"id": 1006, "name": "02 Welding Reports"},
            "LP_REPORTS": {"id": 1007, "name": "02 Liquid Penetrant Reports"},
            "UT_REPORTS": {"id": 1008, "name": "02 Ultrasound Reports"},
            "PAINTING_REPORTS": {"id": 1009, "name": "02 Painting Reports"},
            "CALIBRATION_LOG": {"id": 1010, "name": "03 Calibration Log"},
            "QUOTATIONS": {"id": 1011, "name": "04 Quotations"},
            "ORDERS": {"id": 1012, "name": "04 Orders"},
            "USER_ACTION_LOG": {"id": 1098, "name": "98 User Action Log"},
        }

        self._columns = {
            "RNC_LOG": _columns(2000, {
                "RNC_NUMBER": "RNC Number",
                "TITLE": "Title",
                "DESCRIPTION": "Description",
                "SEVERITY": "Severity",
                "ORIGIN": "Origin",
                "ORDER_NUMBER": "Order Number",
                "ITEM_CODE": "Item Code",
                "SOURCE_REPORT_NUMBER": "Source Report",
                "REPORTED_BY": "Reported By",
                "ASSIGNED_TO": "Assigned To",
                "STATUS": "Status",
                "SLA_DUE": "SLA Due",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "ACTION_PLAN_LOG": _columns(2100, {
                "PLAN_NUMBER": "Plan Number",
                "RNC_NUMBER": "RNC Number",
                "PROBLEM": "Problem",
                "WHYS": "5 Whys",
                "ROOT_CAUSE": "Root Cause",
                "ACTIONS": "Actions",
                "STATUS": "Status",
                "CREATED_BY": "Created By",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "LESSONS_LEARNED": _columns(2200, {
                "LESSON_NUMBER": "Lesson Number",
                "TITLE": "Title",
                "DESCRIPTION": "Description",
                "CATEGORY": "Category",
                "RECOMMENDATION": "Recommendation",
                "RNC_NUMBER": "RNC Number",
                "RECORD_DATE": "Record Date",
                "CREATED_BY": "Created By",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "RAW_MATERIAL_REPORTS": _columns(2300, REPORT_COLUMNS),
            "DIMENSIONAL_REPORTS": _columns(2400, REPORT_COLUMNS),
            "WELDING_REPORTS": _columns(2500, REPORT_COLUMNS),
            "LP_REPORTS": _columns(2600, REPORT_COLUMNS),
            "UT_REPORTS": _columns(2700, REPORT_COLUMNS),
            "PAINTING_REPORTS": _columns(2800, REPORT_COLUMNS),
            "CALIBRATION_LOG": _columns(2900, {
                "CALIBRATION_NUMBER": "Calibration Number",
                "EQUIPMENT_ID": "Equipment ID",
                "EQUIPMENT_NAME": "Equipment Name",
                "CALIBRATION_DATE": "Calibration Date",
                "FREQUENCY_DAYS": "Frequency (days)",
                "NEXT_CALIBRATION_DATE": "Next Calibration Date",
                "STATUS": "Status",
                "RESULT": "Result",
                "PARAMETERS": "Parameters",
                "CALIBRATED_BY": "Calibrated By",
                "NOTES": "Notes",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "QUOTATIONS": _columns(3000, {
                "QUOTATION_NUMBER": "Quotation Number",
                "CUSTOMER_NAME": "Customer Name",
                "STATUS": "Status",
                "ITEMS": "Items",
                "TOTAL_VALUE": "Total Value",
                "TOTAL_TAX": "Total Tax",
                "GRAND_TOTAL": "Grand Total",
                "TOTAL_WEIGHT": "Total Weight",
                "VALIDITY_DATE": "Validity Date",
                "PAYMENT_TERMS": "Payment Terms",
                "ORDER_NUMBER": "Order Number",
                "NOTES": "Notes",
                "CREATED_BY": "Created By",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "ORDERS": _columns(3100, {
                "ORDER_NUMBER": "Order Number",
                "QUOTATION_NUMBER": "Quotation Number",
                "CUSTOMER_NAME": "Customer Name",
                "CUSTOMER_PO": "Customer PO",
                "STATUS": "Status",
                "ITEMS": "Items",
                "TOTAL_VALUE": "Total Value",
                "DELIVERY_DATE": "Delivery Date",
                "CREATED_BY": "Created By",
                "CREATED_AT": "Created At",
                "CLIENT_REQUEST_ID": "Client Request ID",
            }),
            "USER_ACTION_LOG": _columns(9800, {
                "ACTION_ID": "Action ID",
                "TIMESTAMP": "Timestamp",
                "USER_ID": "User ID",
                "ACTION_TYPE": "Action Type",
                "TARGET_TABLE": "Target Table",
                "TARGET_ID": "Target ID",
                "OLD_VALUE": "Old Value",
                "NEW_VALUE": "New Value",
                "NOTES": "Notes",
            }),
        }

    def get_sheet_id(self, logical_name: str) -> Optional[int]:
        sheet = self._sheets.get(logical_name)
        return sheet["id"] if sheet else None

    def get_sheet_name(self, logical_name: str) -> Optional[str]:
        sheet = self._sheets.get(logical_name)
        return sheet["name"] if sheet else None

    def get_column_id(self, sheet_logical: str, column_logical: str) -> Optional[int]:
        col = self._columns.get(sheet_logical, {}).get(column_logical)
        return col["id"] if col else None

    def get_column_name(self, sheet_logical: str, column_logical: str) -> Optional[str]:
        col = self._columns.get(sheet_logical, {}).get(column_logical)
        return col["name"] if col else None

    def is_loaded(self) -> bool:
        return True


# ============== Mock Smartsheet Storage ==============

class MockSmartsheetStorage:
    """In-memory storage simulating Smartsheet sheets, keyed by physical name."""

    def __init__(self):
        self._row_counter = 1000
        self.manifest = MockWorkspaceManifest()
        self.sheets: Dict[str, Dict] = {}

        for sheet_logical, sheet_info in self.manifest._sheets.items():
            columns = [
                {"id": col_info["id"], "title": col_info["name"]}
                for col_info in self.manifest._columns.get(sheet_logical, {}).values()
            ]
            self.sheets[sheet_info["name"]] = {"id": sheet_info["id"], "columns": columns, "rows": []}

    def _get_sheet(self, sheet_ref) -> Dict:
        if isinstance(sheet_ref, str):
            if sheet_ref in self.sheets:
                return self.sheets[sheet_ref]
            physical = self.manifest.get_sheet_name(sheet_ref)
            if physical and physical in self.sheets:
                return self.sheets[physical]
        if isinstance(sheet_ref, int):
            for sheet in self.sheets.values():
                if sheet.get("id") == sheet_ref:
                    return sheet
        raise KeyError(f"Sheet not found: {sheet_ref}")

    def _row_to_dict(self, sheet: Dict, row: Dict) -> Dict:
        col_id_to_name = {c["id"]: c["title"] for c in sheet["columns"]}
        row_dict = {"row_id": row["id"]}
        for cell in row.get("cells", []):
            name = col_id_to_name.get(cell.get("columnId"))
            if name:
                row_dict[name] = cell.get("value")
        return row_dict

    def add_row(self, sheet_ref, row_data: Dict) -> Dict:
        sheet = self._get_sheet(sheet_ref)
        self._row_counter += 1

        col_name_to_id = {c["title"]: c["id"] for c in sheet["columns"]}
        cells = [
            {"columnId": col_name_to_id[col_name], "value": value}
            for col_name, value in row_data.items()
            if col_name in col_name_to_id and value is not None
        ]

        sheet["rows"].append({"id": self._row_counter, "cells": cells})
        return {"id": self._row_counter}

    def list_rows(self, sheet_ref) -> List[Dict]:
        sheet = self._get_sheet(sheet_ref)
        return [self._row_to_dict(sheet, row) for row in sheet["rows"]]

    def find_rows(self, sheet_ref, column_name: str, value: Any) -> List[Dict]:
        return [row for row in self.list_rows(sheet_ref) if column_name in row and row[column_name] == value]

    def update_row(self, sheet_ref, row_id: int, updates: Dict):
        sheet = self._get_sheet(sheet_ref)
        col_name_to_id = {c["title"]: c["id"] for c in sheet["columns"]}

        for row in sheet["rows"]:
            if row["id"] != row_id:
                continue
            for col_name, value in updates.items():
                col_id = col_name_to_id.get(col_name)
                if not col_id:
                    continue
                cell = next((c for c in row["cells"] if c.get("columnId") == col_id), None)
                if cell:
                    cell["value"] = value
                else:
                    row["cells"].append({"columnId": col_id, "value": value})
            return
        raise KeyError(f"Row {row_id} not found")


# ============== Mock Smartsheet Client ==============

class MockSmartsheetClient:
    """Mock Smartsheet client for testing."""

    def __init__(self, storage: MockSmartsheetStorage = None):
        self.storage = storage or MockSmartsheetStorage()
        self._manifest = self.storage.manifest

    def _physical(self, sheet_ref, column_ref: str) -> str:
        if isinstance(sheet_ref, str) and self._manifest.get_sheet_id(sheet_ref) is not None:
            return self._manifest.get_column_name(sheet_ref, column_ref) or column_ref
        return column_ref

    def _resolve(self, sheet_ref, values: Dict) -> Dict:
        return {self._physical(sheet_ref, key): value for key, value in values.items()}

    def resolve_sheet_id(self, sheet_ref) -> int:
        if isinstance(sheet_ref, int):
            return sheet_ref
        return self.storage._get_sheet(sheet_ref)["id"]

    def find_rows(self, sheet_ref, column_ref: str, value: Any) -> List[Dict]:
        return self.storage.find_rows(sheet_ref, self._physical(sheet_ref, column_ref), value)

    def find_row(self, sheet_ref, column_ref: str, value: Any) -> Optional[Dict]:
        rows = self.find_rows(sheet_ref, column_ref, value)
        return rows[0] if rows else None

    def list_rows(self, sheet_ref) -> List[Dict]:
        return self.storage.list_rows(sheet_ref)

    def get_column_values(self, sheet_ref, column_ref: str) -> List[Any]:
        physical = self._physical(sheet_ref, column_ref)
        return [row.get(physical) for row in self.storage.list_rows(sheet_ref)]

    def add_row(self, sheet_ref, row_data: Dict) -> Dict:
        return self.storage.add_row(sheet_ref, self._resolve(sheet_ref, row_data))

    def update_row(self, sheet_ref, row_id: int, updates: Dict) -> Dict:
        self.storage.update_row(sheet_ref, row_id, self._resolve(sheet_ref, updates))
        return {"id": row_id}


# ============== Test Data Factory ==============

class TestDataFactory:
    """Factory for creating request payloads."""

    @staticmethod
    def create_rnc_request(**overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "title": "Weld porosity on flange",
            "description": "Porosity found on item 3 after LP test",
            "severity": "high",
            "origin": "internal",
            "order_number": "OS-0001",
            "reported_by": "inspector@company.com",
            **overrides,
        }

    @staticmethod
    def create_action_plan_request(rnc_number: str = "RNC-0001", **overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "rnc_number": rnc_number,
            "problem": "Porosity on flange welds",
            "whys": ["Gas flow low", "Regulator worn", "No preventive check"],
            "root_cause": "Regulator outside maintenance plan",
            "actions": [
                {"description": "Add regulator to PM plan", "responsible": "maint@company.com",
                 "due_date": "2025-07-01"},
            ],
            "created_by": "quality@company.com",
            **overrides,
        }

    @staticmethod
    def create_report_request(report_type: str = "dimensional", **overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "report_type": report_type,
            "order_number": "OS-0001",
            "item_code": "FL-300",
            "inspector": "inspector@company.com",
            "inspection_date": "2025-06-10",
            "measurements": [
                {"name": "Bore", "nominal": 100, "measured": 100.05,
                 "tolerance_a": "+0.1", "tolerance_b": "-0.05", "unit": "mm"},
            ],
            "findings": [],
            **overrides,
        }

    @staticmethod
    def create_calibration_request(**overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "equipment_id": "PAQ-014",
            "equipment_name": "Digital caliper 150mm",
            "calibration_date": date.today().isoformat(),
            "frequency_days": 180,
            "calibrated_by": "metrology@company.com",
            "parameters": [
                {"name": "Zero", "nominal": 0, "measured": 0.01, "tolerance": 0.02, "unit": "mm"},
            ],
            **overrides,
        }

    @staticmethod
    def create_lesson_request(**overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "title": "Check regulator before long weld runs",
            "description": "Gas flow drops on worn regulators",
            "category": "Welding",
            "record_date": "2025-06-12",
            "created_by": "quality@company.com",
            **overrides,
        }

    @staticmethod
    def create_quotation_request(**overrides) -> Dict:
        return {
            "client_request_id": str(uuid.uuid4()),
            "customer_name": "Acme Industrial",
            "items": [
                {"code": "FL-300", "description": "Flange 300#", "quantity": 4,
                 "unit_price": 250.0, "unit_weight": 12.5, "tax_rate": 10,
                 "production_stages": [{"name": "Cut", "duration_days": 1.5},
                                       {"name": "Weld", "duration_days": 2}]},
                {"code": "SP-10", "description": "Spacer", "quantity": 10,
                 "unit_price": 5.0, "lead_time_days": 2},
            ],
            "validity_days": 30,
            "created_by": "sales@company.com",
            **overrides,
        }


# ============== Mock HTTP Request ==============

class MockHttpRequest:
    """Mock Azure Functions HttpRequest."""

    def __init__(self, body: Dict = None, params: Dict = None):
        self._body = json.dumps(body or {}).encode()
        self.params = params or {}

    def get_json(self) -> Dict:
        return json.loads(self._body)

    def get_body(self) -> bytes:
        return self._body


class InvalidJsonHttpRequest(MockHttpRequest):
    """Request whose body is not JSON."""

    def get_json(self) -> Dict:
        raise ValueError("HTTP request does not contain valid JSON data")


# ============== Fixtures ==============

@pytest.fixture
def mock_manifest():
    """Get mock manifest instance."""
    return MockWorkspaceManifest()


@pytest.fixture
def mock_storage():
    """Get fresh mock storage for each test."""
    return MockSmartsheetStorage()


@pytest.fixture
def mock_client(mock_storage):
    """Get mock Smartsheet client."""
    return MockSmartsheetClient(mock_storage)


@pytest.fixture
def factory():
    """Get test data factory."""
    return TestDataFactory()


@pytest.fixture
def mock_http_request():
    """Factory for creating mock HTTP requests."""
    def _create(body: Dict = None, params: Dict = None) -> MockHttpRequest:
        return MockHttpRequest(body, params)
    return _create


@pytest.fixture
def patched_manifest(mock_client):
    """Patch the manifest singleton with the mock used by the client."""
    with patch('shared.manifest._manifest', mock_client._manifest):
        yield mock_client._manifest


@pytest.fixture
def patched_client(mock_client, patched_manifest):
    """Patch client getter to return mock."""
    with patch('shared.smartsheet_client._client', mock_client):
        yield mock_client
