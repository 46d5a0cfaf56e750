from _pytest.unittest import UnitTestCase
from testscenarios import WithScenarios


def pytest_pycollect_makeitem(collector, name, obj):
    # pytest runs unittest methods bound to the collected instance, which
    # bypasses testscenarios' per-scenario clones; expand scenarios into
    # one collected class per scenario instead.
    if not (isinstance(obj, type) and issubclass(obj, WithScenarios)):
        return None
    scenarios = getattr(obj, 'scenarios', None)
    if not scenarios:
        return None
    items = []
    for scenario_name, params in scenarios:
        attrs = dict(params)
        attrs['scenarios'] = None
        sub = type(obj.__name__, (obj,), attrs)
        sub.__module__ = obj.__module__
        sub.__qualname__ = obj.__qualname__
        item_name = '{0}[{1}]'.format(name, scenario_name)
        # pytest re-resolves collected classes by name on their module.
        setattr(collector.obj, item_name, sub)
        items.append(UnitTestCase.from_parent(
            collector, name=item_name, obj=sub))
    return items
