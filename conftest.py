import sys
from pathlib import Path

# Make ``config`` and the ``inroom`` package importable without installing
sys.path.insert(0, str(Path(__file__).resolve().parent))
