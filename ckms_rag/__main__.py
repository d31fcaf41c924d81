"""Allow running as: python -m ckms_rag ingest|query ..."""

import sys

from ckms_rag.main import main

if __name__ == "__main__":
    sys.exit(main())
