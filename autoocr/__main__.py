import sys

from autoocr.main import main

if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
