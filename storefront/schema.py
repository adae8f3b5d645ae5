"""GraphQL schema: the Query, Mutation and Subscription roots."""
import strawberry

from storefront.resolvers.mutation import Mutation
from storefront.resolvers.query import Query
from storefront.resolvers.subscription import Subscription

schema = strawberry.Schema(query=Query, mutation=Mutation, subscription=Subscription)
