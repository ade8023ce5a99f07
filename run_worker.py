#!/usr/bin/env python
"""Workflow Worker 실행 스크립트

사용법:
    python run_worker.py <payload>    # payload: base64로 인코딩된 작업 파라미터(JSON)

WORKFLOW_NAME / WORKFLOW_MODULES 환경변수로 실행할 워크플로를 지정한다.

종료 코드:
    0  정상 종료
    1  워크플로 실행 중 예외
    2  payload 해석 실패
    3  WORKFLOW_MODULES import 실패 또는 WORKFLOW_NAME 미등록
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Charge monitoring workflow worker")
    parser.add_argument(
        "payload",
        help="base64로 인코딩된 작업 파라미터 (JSON 객체)",
    )

    args = parser.parse_args()

    from charge_watch.tasks.runner import run_workflow

    try:
        return asyncio.run(run_workflow(args.payload))
    except KeyboardInterrupt:
        print("\nWorker stopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
