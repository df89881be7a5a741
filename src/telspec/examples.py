"""
Example observation builder used by the demo script and the tests.

Sub-array 1 is the ten VLBA stations, fully connected (45 baselines).
Sub-array 2 is a small European array in which JB-WB was not
correlated and WB-ON is stored with WB as its first station.
"""
from telspec.model import Baseline, Observation, Station, Subarray

VLBA_STATIONS = ["BR", "FD", "HN", "KP", "LA", "MK", "NL", "OV", "PT", "SC"]
EVN_STATIONS = ["EF", "JB", "ON", "WB"]


def build_example_observation(name: str = "3C273") -> Observation:
    evn = Subarray(
        stations=[Station(name=n) for n in EVN_STATIONS],
        baselines=[
            Baseline(0, 1),  # EF-JB
            Baseline(0, 2),  # EF-ON
            Baseline(0, 3),  # EF-WB
            Baseline(1, 2),  # JB-ON
            Baseline(3, 2),  # WB-ON
        ],
    )
    return Observation(
        name=name,
        subarrays=[Subarray.fully_connected(VLBA_STATIONS), evn],
        metadata={"telescope": "VLBA+EVN"},
    )
