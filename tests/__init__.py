"""
MetaLease Test Suite

Testing framework for the rental marketplace including:
- Rentable token registry tests
- Marketplace and ledger tests
- Integration tests
- API and configuration tests

Author: jetgause
Created: 2025-12-14
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
test_dir = Path(__file__).parent
project_root = test_dir.parent
sys.path.insert(0, str(project_root))

__version__ = "1.0.0"
__all__ = []
