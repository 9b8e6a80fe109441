from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntitySummary(BaseModel):
    name: str
    url: str
    id: Optional[str] = None


class EntityListResponse(BaseModel):
    total_found: int
    returned: int
    cruise_line_filter: str = "none"
    items: List[EntitySummary]
    cache_size: int


class ShipDetailsResponse(BaseModel):
    name: str
    url: str
    search_term: str
    ship_id: Optional[str] = None
    resolved_by: str
    specifications: Dict[str, str]
    current_status: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)
    page_title: str
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Liberty Of The Seas",
                "url": "https://www.cruisemapper.com/ships/liberty-of-the-seas-734",
                "search_term": "Liberty of the Seas",
                "ship_id": "734",
                "resolved_by": "listing",
                "specifications": {"gross_tonnage": "154,407", "passengers": "3,798", "decks": "15"},
                "current_status": "Current position: Galveston",
                "amenities": ["FlowRider surf simulator"],
                "page_title": "Liberty Of The Seas - Itinerary Schedule, Current Position",
            }
        }
    )


class ItineraryLink(BaseModel):
    title: str
    url: str


class ShipScheduleResponse(BaseModel):
    ship_name: str
    url: str
    page_title: str
    ship_heading: str
    ship_id: Optional[str] = None
    itinerary_links_found: int
    itineraries: List[ItineraryLink]
    schedules_found: int
    schedules: List[Dict[str, str]]
    validation_passed: bool = True


class PortCall(BaseModel):
    ship: str
    arrival: Optional[str] = None
    departure: Optional[str] = None
    date: Optional[str] = None
    cruise_line: Optional[str] = None


class PortScheduleResponse(BaseModel):
    port: str
    url: str
    port_id: Optional[str] = None
    page_title: str
    ships_found: int
    ships: List[PortCall]


class CruiseLine(BaseModel):
    name: str
    url: str


class CruiseLinesResponse(BaseModel):
    total_cruise_lines: int
    cruise_lines: List[CruiseLine]


class CruiseListing(BaseModel):
    ship: str = ""
    departure: str = ""
    duration: str = ""
    destination: Optional[str] = None
    ports: Optional[str] = None
    price: Optional[str] = None


class CruiseSearchResponse(BaseModel):
    search_params: Dict[str, str]
    url: str
    cruises_found: int
    cruises: List[CruiseListing]
    note: str


class CacheResponse(BaseModel):
    size: int
    max_size: int
    vessels: Dict[str, str]
    ports: Dict[str, str]
