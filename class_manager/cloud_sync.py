"""
Manual cloud sync through a user-supplied web endpoint.

The endpoint (typically a Google Apps Script web app bound to a sheet)
takes a JSON POST body:

    {"action": "save", "data": {...}}   -> {"status": "success"}
    {"action": "load"}                  -> {"status": "success", "data": {...}}

Failures are logged and reported as False; they never raise.
"""

import json
from datetime import datetime
from typing import Optional
import requests
from sqlalchemy.exc import SQLAlchemyError
from .activity_log import add_log
from .backup import collect_data, restore_data
from .config import CLOUD_SYNC_TIMEOUT
from .repositories import SettingsRepository


class CloudSyncError(Exception):
    """The endpoint answered, but not with a success payload."""


def check_configuration(url: Optional[str]) -> bool:
    """Check that a sync URL is configured."""
    if not url:
        print("Error: no cloud sync URL configured")
        print("Set CLOUD_SYNC_URL or run: python -m class_manager.cli sync set-url <url>")
        return False
    return True


def api_post(url: str, payload: dict) -> dict:
    """POST a JSON payload to the sync endpoint and return its success reply."""
    response = requests.post(
        url,
        data=json.dumps(payload),
        headers={"Content-Type": "text/plain;charset=utf-8"},
        timeout=CLOUD_SYNC_TIMEOUT
    )
    response.raise_for_status()

    result = response.json()
    if result.get("status") != "success":
        raise CloudSyncError(result.get("error") or "Unknown error from sync endpoint")
    return result


def upload_to_cloud(url: Optional[str] = None) -> bool:
    """Send the full data set to the endpoint."""
    url = url or SettingsRepository().get_cloud_url()
    if not check_configuration(url):
        return False

    data = collect_data()
    data["timestamp"] = datetime.utcnow().isoformat()

    try:
        add_log("CLOUD", "Uploading data to the cloud...")
        api_post(url, {"action": "save", "data": data})
    except (requests.RequestException, ValueError, CloudSyncError) as e:
        add_log("CLOUD_ERROR", f"Upload failed: {e}")
        return False

    add_log("CLOUD", "Upload complete")
    return True


def download_from_cloud(url: Optional[str] = None) -> bool:
    """Fetch the data set from the endpoint and overwrite local sections it contains."""
    url = url or SettingsRepository().get_cloud_url()
    if not check_configuration(url):
        return False

    try:
        add_log("CLOUD", "Downloading data from the cloud...")
        result = api_post(url, {"action": "load"})
        data = result.get("data")
        if not isinstance(data, dict):
            raise CloudSyncError("Invalid response format")
        restore_data(data)
    except (requests.RequestException, ValueError, CloudSyncError, SQLAlchemyError) as e:
        add_log("CLOUD_ERROR", f"Download failed: {e}")
        return False

    add_log("CLOUD", "Local data updated from the cloud")
    return True
