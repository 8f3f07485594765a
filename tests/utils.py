from datetime import datetime, timezone


# tests/utils.py
def utc(y, mo, d, h=0, mi=0, s=0):
    return datetime(y, mo, d, h, mi, s, tzinfo=timezone.utc)


def service_payload(**overrides):
    data = {
        "airline": "Garuda Indonesia",
        "flight_type": "DOM",
        "flight_number": "GA-142",
        "registration": "PK-GFA",
        "aircraft_type": "B738",
        "dep_station": "WIII",
        "arr_station": "WITT",
        "arrival_date": utc(2025, 12, 24),
        "ata_utc": utc(2025, 12, 24, 18, 45),
        "advance_extend": "EXTEND",
        "service_start_utc": utc(2025, 12, 24, 19, 0),
        "service_end_utc": utc(2025, 12, 24, 19, 5),
        "use_app": True,
        "use_twr": True,
        "use_afis": False,
    }
    data.update(overrides)
    return data
