"""Welcome to Pairify"""
from pathlib import Path

PROGRAM_NAME = "Pairify"

MODULE_ROOT: str = Path(__file__).parent.name
PACKAGE_ROOT: Path = Path(__file__).parent.parent
