"""Run leetcoach as a module: python -m leetcoach"""

from leetcoach.cli import main

if __name__ == "__main__":
    main()
