from datetime import datetime
import strawberry
from strawberry.tools import merge_types
from eventhub.api.graphql.errors import StructuredErrors
from eventhub.api.graphql.resolvers.comments import CommentMutation, CommentQuery
from eventhub.api.graphql.resolvers.events import EventMutation, EventQuery
from eventhub.api.graphql.resolvers.registrations import RegistrationMutation, RegistrationQuery
from eventhub.api.graphql.resolvers.subscriptions import Subscription
from eventhub.api.graphql.resolvers.users import AuthMutation, UserQuery
from eventhub.api.graphql.scalars import DateTime

Query = merge_types("Query", (UserQuery, EventQuery, RegistrationQuery, CommentQuery))
Mutation = merge_types("Mutation", (AuthMutation, EventMutation, RegistrationMutation, CommentMutation))

schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
    extensions=[StructuredErrors],
    scalar_overrides={datetime: DateTime},
)
