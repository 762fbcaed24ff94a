"""
L4 Load Balancer Conformance Harness

End-to-end testing framework for a standalone L4 load balancer running
with the NAT46/64 gateway enabled.

Scenario Suites:
    1. NAT 4->6 services and restore across reinstalls
    2. NAT 6->4 services and restore across reinstalls
    3. Datapath compilation (TC / XDP / restore)
    4. PCAP recorder filter recompilation
"""

__version__ = "1.0.0"
