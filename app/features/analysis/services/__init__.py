"""
Analysis Services

How a run flows through this package:

1. module.py - the contract every analysis unit implements
   (name, phase, dependencies, async execute(context))

2. resolver.py - orders registered modules so each runs after its
   dependencies; rejects cycles and unknown dependency names

3. context.py - per-run shared state handed to every module
   (url, options, logger, job-scoped cache, outcomes of finished modules)

4. cache.py - Redis backed key/value store, namespaced per job, with an
   in-memory fallback when Redis is unavailable

5. orchestrator.py - registry + executor; runs modules, isolates failures,
   emits events (events.py) and aggregates the results

6. event_stream.py - forwards events to SSE queues and Redis pub/sub

7. report_generator.py - scores the aggregated results
"""
