"""
Neuro Synapse: multi-agent workflow orchestration for NeuroVichar.

Agents, the workflow-engine clients (mock and Orkes), the polling entry point
and the in-process engine live here.
"""
