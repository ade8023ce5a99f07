"""charge-watch: 차량별 모니터링 작업 감독 및 외부 호출 보호"""

__version__ = "0.1.0"
