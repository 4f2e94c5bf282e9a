# comicpack/__main__.py

# Import the logging setup early so that it applies to all loggers.
from comicpack.cli.config import setup_logging
setup_logging()

# Now import the main CLI command.
from comicpack.cli.main import main

if __name__ == "__main__":
    main()
