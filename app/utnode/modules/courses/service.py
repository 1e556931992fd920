from app.utnode.modules.courses.models import Course
from app.utnode.resource import FieldSpec, Resource

resource = Resource(
    slug="courses",
    name="Course",
    plural="Courses",
    model=Course,
    fields=(
        FieldSpec("title", "Title", required=True, unique=True),
        FieldSpec("description", "Description", kind="text", required=True),
        FieldSpec("max_students", "Max students", kind="int", default=0, min=0, range_message="Course cannot have a negative number of students"),
        FieldSpec("cost", "Cost", kind="float", default=0, min=0, range_message="Course cannot have a negative cost"),
    ),
)
