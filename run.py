# run.py
# Description: Entry point for running the tem-client CLI from a source checkout.
#
# Imports
import sys
from pathlib import Path
#
# Local Imports
# --- Add project root to sys.path ---
project_dir = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_dir))
from tem_client.cli import main
#
#######################################################################################################################

if __name__ == "__main__":
    sys.exit(main())

#
# End of run.py
#######################################################################################################################
