import kopf
from samplecontroller.utils.helpers import now


# Liveness probe
@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return now()


@kopf.on.probe(id="queue")
def get_queue_state(memo: kopf.Memo, **kwargs):
    controller = getattr(memo, "controller", None)
    if controller is None:
        return None
    return {
        "running": controller.is_running,
        "depth": controller.queue_depth,
        "inFlight": controller.in_flight,
    }
