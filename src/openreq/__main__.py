"""Allow ``python -m openreq``."""

from openreq.app import main

if __name__ == "__main__":
    main()
