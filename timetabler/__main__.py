"""
Entry point for running timetabler as a module.

Usage:
    python -m timetabler periods --start 08:30 --end 15:00 --count 7 --break 12:00-12:30
    python -m timetabler validate input.json
    python -m timetabler generate input.json -o candidates.json --keep 5 --attempts 200
    python -m timetabler view input.json candidates.json --class 7a
    python -m timetabler sample -o sample.json --seed 1
"""

from timetabler.cli import main

if __name__ == "__main__":
    main()
