"""
Gateway - Submission and confirmation engine for the ledger gateway.

- encoder:   build ``:call`` / ``:sendTx`` request bodies
- transport: async HTTP submit and status-check calls (httpx)
- poller:    wait for a submitted transaction to reach a terminal state
- reporter:  normalize results into OutcomeStatus and log failures
- connector: harness-facing entry point tying the above together
"""
