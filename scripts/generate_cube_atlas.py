#!/usr/bin/env python3
"""
Main entry point for the cube atlas pipeline.
Can be run directly without installing the package.
"""

import sys
from pathlib import Path

# Add the scripts directory to Python path so we can import cube_atlas
scripts_dir = Path(__file__).parent
if str(scripts_dir) not in sys.path:
    sys.path.insert(0, str(scripts_dir))

from cube_atlas.cli import app

if __name__ == "__main__":
    app()
