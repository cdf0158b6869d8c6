import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import os

from dotenv import load_dotenv

from bnb_booking.calendars.ical import parse_calendar
from bnb_booking.network.client import fetch_calendar

load_dotenv()


def save_fixture(content: str, filename: str) -> None:
    os.makedirs("tests/fixtures", exist_ok=True)
    path = f"tests/fixtures/{filename}"
    with open(path, "w", newline="") as f:
        f.write(content)
    feed = parse_calendar(content)
    print(f"Saved {filename} ({len(feed.events)} events, {feed.dropped} dropped)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Save a live iCal feed as a test fixture")
    parser.add_argument("url", help="Calendar export URL")
    parser.add_argument("filename", help="File name under tests/fixtures/")
    args = parser.parse_args()

    save_fixture(fetch_calendar(args.url), args.filename)


if __name__ == "__main__":
    main()
