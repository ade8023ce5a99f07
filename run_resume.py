#!/usr/bin/env python
"""중단된 작업 복구 스크립트 (서버 시작 시 1회 실행)

사용법:
    python run_resume.py                          # 기본 레지스트리 파일 사용
    python run_resume.py --tasks-file tasks.json  # 레지스트리 파일 지정
"""

import argparse
import sys

from dotenv import load_dotenv


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Resume interrupted charge monitoring tasks")
    parser.add_argument(
        "--tasks-file",
        default=None,
        help="레지스트리 파일 경로 (기본: TASKS_FILE_PATH 또는 ./charge_tasks.json)",
    )

    args = parser.parse_args()

    from charge_watch.tasks.supervisor import resume_from_settings

    return resume_from_settings(tasks_file=args.tasks_file)


if __name__ == "__main__":
    sys.exit(main())
