from app.utnode.modules.game.models import Game
from app.utnode.resource import FieldSpec, Resource

resource = Resource(
    slug="game",
    name="Game",
    plural="Games",
    model=Game,
    fields=(
        FieldSpec("title", "Title", required=True, unique=True),
        FieldSpec("description", "Description", kind="text", required=True),
        FieldSpec("gameprice", "Price", kind="float", default=0, min=0, range_message="game cannot have a negative number of price"),
    ),
)
