"""
Classroom administration tools.

This system provides:
- Student roster management (manual entry, CSV import)
- Automatic seating-chart placement
- Weekly conduct scoring and semester summaries
- JSON backup and optional cloud sync
- Command-line interface and web dashboard
"""

from pathlib import Path
from dotenv import load_dotenv

# Load .env from the repository root before config reads the environment
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

__version__ = "1.5.0"
