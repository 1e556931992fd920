from app.utnode.modules.trains.models import Train
from app.utnode.resource import FieldSpec, Resource

resource = Resource(
    slug="trains",
    name="Train",
    plural="Trains",
    model=Train,
    fields=(
        FieldSpec("name", "Name", required=True, unique=True),
        FieldSpec("departure", "Departure", required=True),
        FieldSpec("destination", "Destination", required=True),
        FieldSpec("fare", "Fare", kind="float", default=0, min=0, range_message="Train cannot have a negative fare"),
    ),
)
