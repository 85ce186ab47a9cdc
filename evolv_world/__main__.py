"""
Allow running as module: python -m evolv_world
Analysis of the event log: python -m evolv_world --analyze [path]
"""

import sys

if __name__ == "__main__":
    if '--analyze' in sys.argv:
        from .analyze_simulation import main as analyze_main
        analyze_main([a for a in sys.argv[1:] if a != '--analyze'])
    else:
        from .main import main
        main()
