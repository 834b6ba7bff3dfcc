import pytest

# declared utilities equal the sum of the item utilities on each line
CORPUS = [
    "1[1] 4[2] -1 3[3] -1 2[2] 5[1] -1 -2 S:9",
    "1[2] -1 3[1] 4[2] -1 2[3] 5[2] -1 6[1] -1 -2 S:11",
    "3[2] -1 1[1] 2[4] -1 5[3] -1 -2 S:10",
    "1[3] -1 2[1] -1 3[2] 5[2] -1 6[4] -1 -2 S:12",
]

SCENARIO = [
    "1[2] -1 2[3] -1 -2 S:5",
    "1[1] -1 2[4] -1 -2 S:5",
]


@pytest.fixture
def corpus_lines():
    return list(CORPUS)


@pytest.fixture
def scenario_lines():
    return list(SCENARIO)
