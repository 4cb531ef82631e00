#!/usr/bin/env python3
"""Import recipes from a scanned cookbook PDF.

Usage:
    python scripts/import_recipes.py --dry-run data.pdf       # Preview parsed recipes
    python scripts/import_recipes.py --import --limit 10      # Import the first 10
    python scripts/import_recipes.py --import custom.pdf      # Import everything
"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from cookbook_rag.app import main

if __name__ == "__main__":
    sys.exit(main(["import", *sys.argv[1:]]))
