"""
Fetch Workspace Manifest
========================

Fetches sheet and column IDs from the quality Smartsheet workspace and
generates the workspace_manifest.json file the functions read.

Usage
-----
1. Set environment variables (or a .env file):
   - SMARTSHEET_API_KEY
   - SMARTSHEET_WORKSPACE_ID
   - SMARTSHEET_BASE_URL (optional, defaults to the EU endpoint)

2. Run:
   python fetch_manifest.py

3. The script writes: functions/workspace_manifest.json

Name Mapping
------------
Physical sheet names are matched to logical names:
1. Exact match
2. Match after stripping a numeric prefix ("01 RNC Log" -> "RNC Log")
3. Fallback: UPPER_SNAKE_CASE of the physical name (reported as unmapped)
"""

import os
import sys
import json
import re
import requests
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Any, Optional
from dotenv import load_dotenv

OUTPUT_PATH = Path(__file__).parent / "functions" / "workspace_manifest.json"


# ============== Physical to Logical Name Mapping ==============

SHEET_NAME_MAP = {
    # 01. Non-Conformance
    "RNC Log": "RNC_LOG",
    "Action Plans": "ACTION_PLAN_LOG",
    "Lessons Learned": "LESSONS_LEARNED",

    # 02. Inspection
    "Raw Material Reports": "RAW_MATERIAL_REPORTS",
    "Dimensional Reports": "DIMENSIONAL_REPORTS",
    "Welding Reports": "WELDING_REPORTS",
    "Liquid Penetrant Reports": "LP_REPORTS",
    "Ultrasound Reports": "UT_REPORTS",
    "Painting Reports": "PAINTING_REPORTS",

    # 03. Metrology
    "Calibration Log": "CALIBRATION_LOG",

    # 04. Sales
    "Quotations": "QUOTATIONS",
    "Orders": "ORDERS",

    # 98. Audit
    "User Action Log": "USER_ACTION_LOG",
}

_REPORT_COLUMNS = {
    "Report Number": "REPORT_NUMBER",
    "Report Type": "REPORT_TYPE",
    "Order Number": "ORDER_NUMBER",
    "Item Code": "ITEM_CODE",
    "Inspector": "INSPECTOR",
    "Inspection Date": "INSPECTION_DATE",
    "Standard": "STANDARD",
    "Result": "RESULT",
    "Measurements": "MEASUREMENTS",
    "Findings": "FINDINGS",
    "Notes": "NOTES",
    "Created At": "CREATED_AT",
    "Client Request ID": "CLIENT_REQUEST_ID",
}

# Physical column names whose logical name is not their UPPER_SNAKE_CASE form
COLUMN_NAME_MAP = {
    "RNC_LOG": {
        "RNC Number": "RNC_NUMBER",
        "Source Report": "SOURCE_REPORT_NUMBER",
    },
    "ACTION_PLAN_LOG": {
        "Plan Number": "PLAN_NUMBER",
        "5 Whys": "WHYS",
    },
    **{sheet: _REPORT_COLUMNS for sheet in (
        "RAW_MATERIAL_REPORTS", "DIMENSIONAL_REPORTS", "WELDING_REPORTS",
        "LP_REPORTS", "UT_REPORTS", "PAINTING_REPORTS",
    )},
    "CALIBRATION_LOG": {
        "Calibration Number": "CALIBRATION_NUMBER",
        "Frequency (days)": "FREQUENCY_DAYS",
    },
    "LESSONS_LEARNED": {
        "Lesson Number": "LESSON_NUMBER",
    },
    "USER_ACTION_LOG": {
        "Action ID": "ACTION_ID",
    },
}


def to_snake(name: str) -> str:
    return re.sub(r'[^a-zA-Z0-9]+', '_', name).upper().strip('_')


def find_logical_sheet_name(physical_name: str) -> Optional[str]:
    """Logical name for a physical sheet name, None when unmapped."""
    if physical_name in SHEET_NAME_MAP:
        return SHEET_NAME_MAP[physical_name]

    normalized = re.sub(r'^\d+[a-z]?\s*', '', physical_name)
    return SHEET_NAME_MAP.get(normalized)


def find_logical_column_name(sheet_logical_name: str, physical_name: str) -> str:
    sheet_columns = COLUMN_NAME_MAP.get(sheet_logical_name, {})
    return sheet_columns.get(physical_name) or to_snake(physical_name)


# ============== Manifest Builder ==============

def build_manifest(fetch: Callable[[str], Dict[str, Any]], workspace_id: int) -> Dict[str, Any]:
    """
    Walk the workspace and build the manifest dict.

    Args:
        fetch: Callable returning the JSON of a Smartsheet API path
            (e.g. "/workspaces/1?include=sheets,folders")
        workspace_id: Smartsheet workspace ID
    """
    manifest = {
        "_meta": {
            "description": "Smartsheet Workspace Manifest - Maps logical names to immutable IDs",
            "version": "1.0.0",
            "generated_at": datetime.now().isoformat(),
            "generated_by": "fetch_manifest.py",
            "unmapped_sheets": [],
        },
        "workspace": {},
        "folders": {},
        "sheets": {},
    }

    def add_sheet(sheet_info, folder_logical=None):
        logical_name = find_logical_sheet_name(sheet_info["name"])
        if logical_name is None:
            logical_name = to_snake(sheet_info["name"])
            manifest["_meta"]["unmapped_sheets"].append(sheet_info["name"])
            print(f"  ⚠ No mapping for sheet '{sheet_info['name']}', using '{logical_name}'")

        detail = fetch(f"/sheets/{sheet_info['id']}?include=columns")
        columns = {}
        for col in detail.get("columns", []):
            columns[find_logical_column_name(logical_name, col["title"])] = {
                "id": col["id"],
                "name": col["title"],
                "type": col.get("type", "TEXT_NUMBER"),
            }

        manifest["sheets"][logical_name] = {
            "id": sheet_info["id"],
            "name": sheet_info["name"],
            "folder": folder_logical,
            "columns": columns,
        }
        print(f"  📄 {sheet_info['name']} -> {logical_name} ({len(columns)} columns)")

    def add_folder(folder_info):
        folder_logical = to_snake(folder_info["name"])
        manifest["folders"][folder_logical] = {"id": folder_info["id"], "name": folder_info["name"]}
        print(f"\n📁 {folder_info['name']}")

        detail = fetch(f"/folders/{folder_info['id']}?include=sheets,folders")
        for sheet in detail.get("sheets", []):
            add_sheet(sheet, folder_logical)
        for subfolder in detail.get("folders", []):
            add_folder(subfolder)

    workspace = fetch(f"/workspaces/{workspace_id}?include=sheets,folders")
    manifest["workspace"] = {"id": int(workspace_id), "name": workspace.get("name")}

    for sheet in workspace.get("sheets", []):
        add_sheet(sheet)
    for folder in workspace.get("folders", []):
        add_folder(folder)

    return manifest


def main():
    load_dotenv()

    api_key = os.getenv("SMARTSHEET_API_KEY")
    base_url = os.getenv("SMARTSHEET_BASE_URL", "https://api.smartsheet.eu/2.0")
    workspace_id = os.getenv("SMARTSHEET_WORKSPACE_ID")

    if not api_key or not workspace_id:
        print("SMARTSHEET_API_KEY and SMARTSHEET_WORKSPACE_ID environment variables are required")
        sys.exit(1)

    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    def fetch(path: str) -> Dict[str, Any]:
        response = requests.get(f"{base_url}{path}", headers=headers, timeout=30)
        response.raise_for_status()
        return response.json()

    print("=" * 60)
    print("Workspace Manifest Generator")
    print(f"Timestamp: {datetime.now().isoformat()}")
    print("=" * 60)

    manifest = build_manifest(fetch, int(workspace_id))

    OUTPUT_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(OUTPUT_PATH, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    print("\n" + "=" * 60)
    print(f"✓ Manifest saved to: {OUTPUT_PATH}")
    print(f"Workspace: {manifest['workspace']['name']} ({manifest['workspace']['id']})")
    print(f"Sheets: {len(manifest['sheets'])}")
    if manifest["_meta"]["unmapped_sheets"]:
        print(f"Unmapped sheets: {', '.join(manifest['_meta']['unmapped_sheets'])}")


if __name__ == "__main__":
    main()
