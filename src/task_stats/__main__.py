"""Allow ``python -m task_stats``."""

from task_stats.cli import main

main()
