#!/usr/bin/env python3
"""Install, update or uninstall Kiro from a source checkout.

    python3 installer.py [--install|--update|--uninstall] [--user] [--force] [--clean]
"""
from pathlib import Path

from kiro_installer.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main(prog=Path(__file__).name))
