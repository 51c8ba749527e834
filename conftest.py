"""Root conftest.py — ensure src/portalexport is importable without pip install."""

import sys
from pathlib import Path

# Insert src/ directory at the front of sys.path so that
# `import portalexport` resolves to src/portalexport/ (the real package)
# rather than falling back to a namespace-package stub.
_src_dir = str(Path(__file__).resolve().parent / "src")
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)
