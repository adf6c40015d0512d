"""Allow running as: python -m requirement_audit"""

from requirement_audit.main import main

if __name__ == "__main__":
    main()
