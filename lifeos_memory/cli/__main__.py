"""Allow ``python -m lifeos_memory.cli`` execution."""

from lifeos_memory.cli.memory import main

main()
