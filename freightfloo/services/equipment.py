"""
Static equipment catalogue. Carriers list the ids they run; trucks store one id
as truck_type.
"""
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class EquipmentType:
    id: str
    name: str
    description: str
    capacity: str
    suitable_for: tuple

    def to_dict(self) -> dict:
        data = asdict(self)
        data["suitable_for"] = list(self.suitable_for)
        return data


EQUIPMENT_TYPES: List[EquipmentType] = [
    EquipmentType("dry-van", "Dry Van", "Enclosed trailer for general freight", "Up to 80,000 lbs",
                  ("General Freight", "Electronics", "Furniture", "Clothing", "Food & Beverage")),
    EquipmentType("flatbed", "Flatbed", "Open trailer for oversized or heavy cargo", "Up to 80,000 lbs",
                  ("Construction Materials", "Machinery", "Steel", "Lumber", "Oversized Items")),
    EquipmentType("reefer", "Refrigerated", "Temperature-controlled trailer", "Up to 80,000 lbs",
                  ("Food & Beverage", "Pharmaceuticals", "Chemicals", "Perishables")),
    EquipmentType("container", "Container", "Intermodal container transport", "Up to 80,000 lbs",
                  ("General Freight", "Electronics", "Clothing", "International Cargo")),
    EquipmentType("tanker", "Tanker", "Liquid or gas transport", "Up to 80,000 lbs",
                  ("Chemicals", "Fuel", "Food Products", "Hazardous Materials")),
    EquipmentType("car-carrier", "Car Carrier", "Specialized for vehicle transport", "Up to 10 vehicles",
                  ("Automotive", "Vehicles", "Motorcycles", "Boats")),
    EquipmentType("lowboy", "Lowboy", "Low-profile trailer for heavy equipment", "Up to 80,000 lbs",
                  ("Construction Equipment", "Heavy Machinery", "Oversized Items")),
    EquipmentType("step-deck", "Step Deck", "Two-level trailer for tall cargo", "Up to 80,000 lbs",
                  ("Machinery", "Construction Materials", "Tall Equipment")),
    EquipmentType("hotshot", "Hotshot", "Smaller truck for urgent deliveries", "Up to 26,000 lbs",
                  ("Urgent Deliveries", "Small Freight", "Time-Sensitive Cargo")),
    EquipmentType("box-truck", "Box Truck", "Small to medium freight transport", "Up to 26,000 lbs",
                  ("Local Deliveries", "Small Freight", "Furniture", "Electronics")),
]

_BY_ID = {e.id: e for e in EQUIPMENT_TYPES}


def get_equipment_type(equipment_id: str) -> Optional[EquipmentType]:
    return _BY_ID.get(equipment_id)


def unknown_equipment_ids(ids: Iterable[str]) -> List[str]:
    return [i for i in ids if i not in _BY_ID]


def suitable_equipment(cargo: str) -> List[EquipmentType]:
    """Equipment whose suitable_for list overlaps the cargo description (case-insensitive substring)."""
    needle = cargo.strip().lower()
    if not needle:
        return []
    return [
        e for e in EQUIPMENT_TYPES
        if any(needle in s.lower() or s.lower() in needle for s in e.suitable_for)
    ]
