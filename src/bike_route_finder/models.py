from dataclasses import dataclass, field


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def as_query(self) -> str:
        """Format as the "lat,lon" string used by map APIs."""
        return f"{self.lat},{self.lon}"


@dataclass(frozen=True)
class Step:
    """One turn-by-turn instruction of a candidate route."""
    instruction: str
    path: tuple[GeoPoint, ...]
    distance: float  # meters


@dataclass(frozen=True)
class Candidate:
    """A route returned by the routing provider for one request."""
    path: tuple[GeoPoint, ...]
    steps: tuple[Step, ...]
    distance: float  # meters


@dataclass(frozen=True)
class RouteRequest:
    """Options passed to the routing provider for one candidate."""
    avoid_highways: bool = True
    avoid_ferries: bool = True
    waypoints: tuple[GeoPoint, ...] = ()
    region: str | None = None


@dataclass(frozen=True)
class ElevationMetrics:
    total_gain: float = 0.0  # meters
    total_loss: float = 0.0  # meters
    max_grade: float = 0.0  # percent
    average_grade: float = 0.0  # percent

    def to_dict(self) -> dict:
        return {
            "total_gain": self.total_gain,
            "total_loss": self.total_loss,
            "max_grade": self.max_grade,
            "average_grade": self.average_grade,
        }


@dataclass(frozen=True)
class AnnotatedStep:
    instruction: str
    path: tuple[GeoPoint, ...]
    distance: float  # meters
    elevation: float  # gain over the step, meters
    grade: float  # gain / distance, percent
    max_grade: float  # percent

    def to_dict(self) -> dict:
        return {
            "instruction": self.instruction,
            "distance": self.distance,
            "elevation": self.elevation,
            "grade": self.grade,
            "max_grade": self.max_grade,
            "path": [[p.lat, p.lon] for p in self.path],
        }


@dataclass(frozen=True)
class RouteOption:
    """A scored and annotated route, tagged with the strategy that produced it."""
    id: str
    name: str
    description: str
    path: tuple[GeoPoint, ...]
    steps: tuple[AnnotatedStep, ...]
    metrics: ElevationMetrics
    distance: float  # meters
    elevations: tuple[float, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "distance": self.distance,
            "metrics": self.metrics.to_dict(),
            "elevations": list(self.elevations),
            "steps": [s.to_dict() for s in self.steps],
            "path": [[p.lat, p.lon] for p in self.path],
        }
