from app.utnode.modules.talks.models import Talk
from app.utnode.resource import FieldSpec, Resource

resource = Resource(
    slug="talks",
    name="Talk",
    plural="Talks",
    model=Talk,
    fields=(
        FieldSpec("title", "Title", required=True, unique=True),
        FieldSpec("speaker", "Speaker", required=True),
        FieldSpec("description", "Description", kind="text"),
        FieldSpec("duration_minutes", "Duration (minutes)", kind="int", default=0, min=0, range_message="Talk cannot have a negative duration"),
    ),
)
