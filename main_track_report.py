#!/usr/bin/env python3
"""
Main CLI script for the Atlantic hurricane track report.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from storm_tracks.main_track_report import main

if __name__ == "__main__":
    sys.exit(main())
