from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from pagecraft.engine.backend import ReportLabBackend
from pagecraft.engine.canvas import DocumentCanvas
from pagecraft.engine.session import PageGeometry


class RecordingBackend(ReportLabBackend):
    """Real ReportLab backend that also keeps a log of every mark."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls: List[Tuple] = []
        self._font: Optional[str] = None
        self._fill = None

    def set_fill(self, color) -> None:
        self._fill = tuple(color)
        super().set_fill(color)

    def set_font(self, font_name: str, size: float) -> None:
        self._font = font_name
        super().set_font(font_name, size)

    def rect(self, x, y, w, h, fill=True, stroke=False, radius=0.0) -> None:
        self.calls.append(("rect", x, y, w, h, self._fill if fill else None))
        super().rect(x, y, w, h, fill=fill, stroke=stroke, radius=radius)

    def line(self, x1, y1, x2, y2) -> None:
        self.calls.append(("line", x1, y1, x2, y2))
        super().line(x1, y1, x2, y2)

    def text(self, value, x, y, align="left") -> None:
        self.calls.append(("text", value, x, y, self._font))
        super().text(value, x, y, align=align)

    def mark(self) -> int:
        return len(self.calls)

    def since(self, mark: int, kind: str) -> List[Tuple]:
        return [c for c in self.calls[mark:] if c[0] == kind]

    def texts(self, mark: int = 0) -> List[str]:
        return [c[1] for c in self.since(mark, "text")]


def make_doc(geometry: Optional[PageGeometry] = None, title: str = "Test") -> DocumentCanvas:
    geometry = geometry or PageGeometry()
    backend = RecordingBackend(geometry.width, geometry.height, title=title)
    return DocumentCanvas(title=title, geometry=geometry, backend=backend)


@pytest.fixture
def doc() -> DocumentCanvas:
    return make_doc()


@pytest.fixture
def doc_factory():
    return make_doc


@pytest.fixture
def sample_company() -> dict:
    return {
        "name": "Sharma Weaving Mills",
        "address": "Plot 12, GIDC",
        "city": "Surat",
        "state": "Gujarat",
        "pincode": "394221",
        "phone": "9876543210",
        "gst": "24ABCDE1234F1Z5",
    }


@pytest.fixture
def sample_challan() -> dict:
    items = [
        {
            "quality_name": f"Rayon Twill {i}",
            "panna": 58,
            "ordered_meters": 120.5,
            "weight_per_meter": 0.1425,
            "calculated_weight": 17.17,
            "price_per_meter": 42.0,
            "calculated_amount": 5061.0,
        }
        for i in range(1, 4)
    ]
    return {
        "challan_number": "DC-2024-001",
        "issue_date": "2024-03-01",
        "due_date": "2024-03-31",
        "status": "Open",
        "party": {
            "party_name": "Mehta Textiles",
            "contact_person": "R. Mehta",
            "phone": "9811122233",
            "gst_number": "24AAACM1234K1Z2",
        },
        "items": items,
        "totals": {"subtotal_amount": 15183.0, "total_meters": 361.5, "total_weight": 51.51},
        "payments": [
            {"date": "2024-03-10", "method": "NEFT", "reference": "UTR998877", "amount": 5000.0},
        ],
        "interest_rate": 0.05,
        "notes": "Deliver to the rear gate. Rolls must stay wrapped.",
    }


def _section(denier, net, gross, cost, yarn_name, **extra) -> dict:
    section = {
        "denier": denier,
        "wastage": 5,
        "net_weight": net,
        "weight": gross,
        "cost": cost,
        "yarn": {"yarn_name": yarn_name, "yarn_category": "filament", "tpm": 800, "yarn_price": 240, "yarn_gst": 5},
    }
    section.update(extra)
    return section


@pytest.fixture
def sample_estimate() -> dict:
    return {
        "quality_name": "Rayon 60x60",
        "current_version": 2,
        "tags": ["export", "summer"],
        "created_at": "2024-02-01",
        "updated_at": "2024-03-05",
        "notes": "Rates revised after the March yarn price change.",
        "warp": _section(120, 0.05, 0.0525, 12.6, "Viscose 120D", tar=8400),
        "weft": _section(150, 0.04, 0.042, 10.08, "Viscose 150D", peek=60, panna=58),
        "weft2_enabled": True,
        "weft2": _section(75, 0.01, 0.0105, 2.52, "Zari 75D", peek=12, panna=58),
        "total_net_weight": 0.1,
        "total_weight": 0.105,
        "other_cost_per_meter": 3,
        "total_cost": 28.2,
        "versions": [
            {
                "version_number": n,
                "edited_at": f"2024-03-0{n}",
                "edited_by": "Anil",
                "data": {"quality_name": "Rayon 60x60", "total_cost": 25 + n, "total_weight": 0.105},
            }
            for n in (1, 2)
        ],
    }


@pytest.fixture
def sample_production() -> dict:
    return {
        "id": "64f0c2abc123",
        "quality_name": "Rayon 60x60",
        "status": "active",
        "created_at": "2024-03-01",
        "loom_params": {"rpm": 180, "pick": 60, "efficiency": 85, "machines": 4, "working_hours": 24},
        "calculations": {
            "raw_picks_per_day": 881280,
            "raw_production_meters": 373.0759,
            "monthly_production": {"raw": 9699.97, "working_days": 26},
        },
        "reference_data": {"panna": 58, "reed_space": 72, "warp_count": 40, "weft_count": ""},
        "notes": "Looms 3 and 4 on the new beam.",
    }


@pytest.fixture
def sample_entry() -> dict:
    return {
        "id": "65a1f0e9d8c7b6a5",
        "entry_date": "2024-03-15",
        "shift": "Night",
        "operator_name": "Suresh Patel",
        "loom": {"id": "65a1000000001234", "loom_number": "L-12", "loom_type": "Rapier", "status": "running"},
        "set": {"id": "65a1000000005678", "set_number": "S-4", "quality_name": "Rayon 60x60", "status": "active"},
        "beam": {"beam_number": "B-9", "remaining_length": 820, "total_length": 1000},
        "beam_length_used": 60,
        "start_time": "2024-03-15T20:00:00",
        "end_time": "2024-03-16T04:00:00",
        "total_hours": 8,
        "meters_produced": 120,
        "efficiency": 82.5,
        "actual_picks": 241500,
        "loom_stoppage_time": 48,
        "stoppage_reason": "Warp break on the left selvedge",
        "defects": {"count": 6, "types": ["Broken pick", "Float"], "description": "Floats near the selvedge."},
        "remarks": "Beam change due next shift.",
        "created_by": {"name": "Suresh Patel", "email": "suresh@example.com"},
        "created_at": "2024-03-16T04:05:00",
        "updated_at": "2024-03-16T04:05:00",
    }
