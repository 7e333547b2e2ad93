"""Entry point for running the pipeline as a module.

Allows running with: python -m src.pipeline
"""

import sys

from src.pipeline.runner import main

if __name__ == "__main__":
    sys.exit(main())
