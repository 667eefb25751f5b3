"""
Counter state for the synthetic publisher.

Each measurement carries an integer counter that is incremented once per
publish round and reset to zero after it reaches the wrap value.
"""

from typing import Dict, Mapping, Tuple

DEFAULT_MEASUREMENTS: Dict[str, int] = {
    "temperature": 0,
    "humidity": 10,
    "pressure": 20,
}
WRAP_AT = 100


def next_readings(state: Mapping[str, int], wrap_at: int = WRAP_AT) -> Tuple[Dict[str, int], Dict[str, int]]:
    """
    한 라운드의 발행 값과 다음 상태를 계산합니다.

    Args:
        state: 측정값 이름별 현재 카운터
        wrap_at: 이 값에 도달한 카운터는 발행 후 0으로 초기화

    Returns:
        (이번 라운드에 발행할 값, 다음 라운드 상태)
    """
    readings = {name: value + 1 for name, value in state.items()}
    new_state = {name: (0 if value >= wrap_at else value) for name, value in readings.items()}
    return readings, new_state


def parse_measurements(text: str) -> Dict[str, int]:
    """
    ``name=start,name=start`` 형식의 문자열을 파싱합니다.

    Raises:
        ValueError: 형식이 잘못된 경우
    """
    result: Dict[str, int] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, start = item.partition("=")
        name = name.strip()
        if not name:
            raise ValueError(f"measurement name missing in {item!r}")
        result[name] = int(start) if sep else 0
    if not result:
        raise ValueError("no measurements given")
    return result
