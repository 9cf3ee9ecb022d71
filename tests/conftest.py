import pytest

from bikemap.load_data import accident_frame
from bikemap.models import AccidentRecord, PROPERTY_DAMAGE


def make_record(id=0, category=PROPERTY_DAMAGE, time_index=0, street="", on_protected_lane=False,
                longitude=-74.0, latitude=40.7, date=""):
    return AccidentRecord(
        id=id,
        longitude=longitude,
        latitude=latitude,
        category=category,
        street=street,
        date=date,
        severity="",
        description="",
        time_index=time_index,
        on_protected_lane=on_protected_lane,
    )


@pytest.fixture
def frame_of():
    def _frame(*records):
        return accident_frame(list(records))
    return _frame
