import json
import sys

from segments.discovery import list_segments
from segments.store import read_rows


def main(dirname: str) -> None:
    for params in list_segments(dirname):
        rows = read_rows(params.path)
        print(f"# {params.path} ({len(rows)} rows)")
        for row in rows:
            print(
                f"{row['time']} {row['t_fact']} {row['type']} "
                f"{json.dumps(row['data'], ensure_ascii=False)}"
            )


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python dump_segments.py LOG_DIR")
        sys.exit(1)

    main(sys.argv[1])
