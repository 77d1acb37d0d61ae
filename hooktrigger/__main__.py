"""python -m hooktrigger"""
from hooktrigger.cli import main

main()
