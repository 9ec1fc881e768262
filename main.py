#!/usr/bin/env python3
"""
Deadline Rule Engine - Entry Point

Turns reusable deadline rules into a dated compliance timeline for a
company, with warnings for rules whose anchor data is missing.

Usage:
    python main.py preview --rules rules.json --fye-month 12 --fye-day 31
    python main.py preview --rules rules.json --service-start 2024-03-01 --now 2024-06-01
    python main.py preview --rules rules.json --exclusions excluded.json --export-json timeline.json
    python main.py templates --category TAX
    python main.py templates --bundle CORP_SEC_ANNUAL
"""

from deadline_engine.cli import main

if __name__ == "__main__":
    main()
