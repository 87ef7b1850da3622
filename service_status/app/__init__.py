"""
Equipment status gateway service.

The gateway sits between the network dashboard and the upstream account
directory, providing:
- Time-bound caching of summary and list queries
- Suppression of operator-curated accounts from every derived view
- Aggregate recomputation that keeps counts consistent with list views
- Bounded-concurrency lookups for the suppressed account list

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: GraphQL client and query documents for the directory.
- app.caching: TTL cache.
- app.domain: Records, mapping, suppression, aggregation, fetching, and
  the StatusService that composes them.
"""
