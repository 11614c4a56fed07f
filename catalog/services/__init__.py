# Services package.
#
#   query_planner: FilterSpec -> store statements and cache keys
#   cache_aside: cache-aside reader and single-entry invalidation
#   ownership: author-only check for mutations
#   article_service: create / list / get / update / remove for Article
#   auth_service: registration, login and bearer-token verification
#
# Services are constructed once in ``catalog.main.create_app`` and receive
# their stores and cache explicitly; none of them hold a session.
