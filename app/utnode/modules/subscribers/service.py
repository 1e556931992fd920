from app.utnode.modules.subscribers.models import Subscriber
from app.utnode.resource import FieldSpec, Resource
from app.utnode.validation import IsEmail

resource = Resource(
    slug="subscribers",
    name="Subscriber",
    plural="Subscribers",
    model=Subscriber,
    fields=(
        FieldSpec("name", "Name", required=True),
        FieldSpec("email", "Email", kind="email", required=True, unique=True),
        FieldSpec("zip_code", "Zip code", kind="int", min=10000, max=99999, range_message="Zip code must be 5 digits"),
    ),
    extra_rules=(("email", IsEmail(message="Enter a valid email")),),
)
