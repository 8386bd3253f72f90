"""CLI script to inspect stored tuition codes.
Usage: python scripts/list_codes.py [--start N --end N] [--around CODE]
"""
import sys
import argparse
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `tuitionhub` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from tuitionhub.database import engine, create_db_and_tables
from tuitionhub import repositories
from tuitionhub.utils.tuition_codes import normalize_code, parse_code_number


def main(start: int = 150, end: int = 200, around: Optional[str] = None):
    """Print stored codes, the numbers in use and availability of a window.

    With `around`, the window is the five codes either side of that code.
    Fallback codes (`ST<ms>_<n>`) are listed but skipped when collecting
    numbers.
    """
    create_db_and_tables()
    with Session(engine) as session:
        codes = repositories.TuitionRepository(session).list_codes()
    print(f'Total tuitions: {len(codes)}')
    for i, code in enumerate(sorted(codes), start=1):
        print(f'{i}. {code}')
    numbers = sorted(n for n in (parse_code_number(c) for c in codes) if n is not None)
    print(f'Numbers in use: {numbers}')
    if around:
        centre = parse_code_number(normalize_code(around.strip()))
        if centre is None:
            print(f'Not a numeric tuition code: {around}')
            return
        start, end = centre - 5, centre + 5
    used = set(codes)
    print(f'Availability ST{start}..ST{end}:')
    for n in range(start, end + 1):
        code = f'ST{n}'
        print(f'{code}: {"used" if code in used else "available"}')


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--start', type=int, default=150, help='First code number to report')
    parser.add_argument('--end', type=int, default=200, help='Last code number to report')
    parser.add_argument('--around', help='Report the codes surrounding this code instead')
    args = parser.parse_args()
    main(start=args.start, end=args.end, around=args.around)
