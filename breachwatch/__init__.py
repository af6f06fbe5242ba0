"""
BreachWatch

Personal-data breach handling: incident intake, severity classification,
regulator notification deadlines and deadline monitoring.

Usage:
    from breachwatch.breach import get_incident_store, get_deadline_monitor

    store = get_incident_store()
    report = store.report_incident({...})
    monitor = get_deadline_monitor()
    items = monitor.find_incidents_requiring_attention()
"""

__version__ = "1.0.0"
