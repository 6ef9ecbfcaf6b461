# app.py
"""
Application entrypoint.

Usage:
  python app.py targets --date 2025-01-09
  python app.py peak --date 2025-01-09 -s 1=500,000 -s 2=620000:rain --oyako 2
  python app.py carry --tomorrow 450000 --day-after 600000 --two-days-after 400000 --oyako-dan 1
  python app.py intraday --today-pred 500000 --today-actual 200000 --tomorrow 450000 --day-after 500000
  python app.py table show
"""

from kaitou.adapters.cli import main

if __name__ == "__main__":
    main()
