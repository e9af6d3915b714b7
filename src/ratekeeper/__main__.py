# src/ratekeeper/__main__.py
"""Module entry point: python -m ratekeeper"""
import sys

from ratekeeper.app import main

sys.exit(main())
