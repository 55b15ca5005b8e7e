#!/usr/bin/env python3
"""Script to inspect data returned by the aioura fetch methods.

Usage:
    OURA_API_TOKEN=... python fetch_data.py [START_DATE END_DATE]

Responses are cached in .oura_cache.json next to this script, so a second
run within the cache duration makes no API calls.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import aiohttp

from aioura import JsonFileStore, OuraClient, OuraConfig, OuraError

CACHE_FILE = Path(__file__).parent / ".oura_cache.json"


def print_section(title: str, data: dict | list | None):
    """Pretty print a data section."""
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")
    if data is None:
        print("  (No data)")
    elif isinstance(data, dict):
        for key, value in sorted(data.items()):
            if isinstance(value, dict):
                print(f"  {key}: {{...}} ({len(value)} keys)")
            elif isinstance(value, list):
                print(f"  {key}: [...] ({len(value)} items)")
            elif isinstance(value, str) and len(value) > 50:
                print(f"  {key}: '{value[:50]}...'")
            else:
                print(f"  {key}: {value}")
    else:
        print(f"  {data}")


async def main():
    """Fetch and display all data from aioura."""
    logging.basicConfig(level=logging.INFO)
    start_date = end_date = None
    if len(sys.argv) > 2:
        start_date, end_date = sys.argv[1], sys.argv[2]

    config = OuraConfig.from_env()
    if not config.api_token:
        print("Set OURA_API_TOKEN first.")
        return

    async with aiohttp.ClientSession() as session:
        client = OuraClient(session, config, JsonFileStore(CACHE_FILE))

        status = await client.validate_connection()
        print(f"Connection: {status.message}")
        if not status.valid:
            return

        try:
            print_section("Personal Info", await client.get_personal_info())
            summary = await client.get_health_summary(start_date, end_date)
            for name in ("activity", "sleep", "readiness", "hrv", "temperature"):
                print_section(name.title(), summary[name])
            recovery = await client.get_recovery_data(start_date, end_date)
            print_section("Recovery", recovery)
        except OuraError as err:
            print(json.dumps(err.to_dict(), indent=2))

        print_section("Usage", client.get_usage_stats().model_dump())


if __name__ == "__main__":
    asyncio.run(main())
