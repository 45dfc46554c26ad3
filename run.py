# run.py
# Description: Entry point for running the Quick Notes sync CLI from a source checkout.
#
# Imports
from pathlib import Path
import sys
# 3rd-party Libraries
#
# Local Imports
# --- Add project root to sys.path ---
project_dir = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_dir))
try:
    from quick_notes.cli import main
except ModuleNotFoundError as e:
    print(f"ERROR: run.py: Failed to import from quick_notes package.")
    print(f"       Ensure '{project_dir}' contains 'quick_notes' and its dependencies are installed.")
    print(f"       Original error: {e}")
    sys.exit(1)
#
#######################################################################################################################
#
# Functions:

if __name__ == "__main__":
    sys.exit(main())

#
# End of run.py
#######################################################################################################################
