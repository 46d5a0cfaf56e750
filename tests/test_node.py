import requests_mock

from tests.base import JenkinsTestBase

import jenkins_graph


class JenkinsNodesTestBase(JenkinsTestBase):

    computers = {
        u'busyExecutors': 1,
        u'computer': [
            {u'displayName': u'master', u'offline': False},
            {u'displayName': u'agent 1', u'offline': True},
        ],
    }

    node_info = {
        u'displayName': u'agent 1',
        u'idle': False,
        u'numExecutors': 2,
        u'offline': True,
        u'offlineCauseReason': u'disk full',
        u'executors': [
            {u'number': 0, u'idle': True, u'progress': -1},
            {u'number': 1, u'idle': False, u'progress': 42},
        ],
    }


class JenkinsGetNodesTest(JenkinsNodesTestBase):

    @requests_mock.Mocker()
    def test_simple(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), json=self.computers)

        nodes = list(self.j.get_nodes())

        self.assertEqual([node.name for node in nodes],
                         [u'master', u'agent 1'])
        self.assertIsInstance(nodes[0], jenkins_graph.Node)
        self.assertEqual(req_mock.last_request.url,
                         self.make_url('computer/api/json?depth=1'))

    @requests_mock.Mocker()
    def test_lazy(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), json=self.computers)

        nodes = self.j.get_nodes()
        self.assertFalse(req_mock.called)

        next(nodes)
        self.assertEqual(req_mock.call_count, 1)

    @requests_mock.Mocker()
    def test_restartable(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), json=self.computers)

        first = list(self.j.get_nodes())
        second = list(self.j.get_nodes())

        self.assertEqual(first, second)
        self.assertEqual(len(first), 2)
        self.assertEqual(req_mock.call_count, 2)

    @requests_mock.Mocker()
    def test_reflects_current_state(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), [
            {'json': self.computers},
            {'json': {u'computer': [{u'displayName': u'master'}]}},
        ])

        self.assertEqual(len(list(self.j.get_nodes())), 2)
        self.assertEqual(len(list(self.j.get_nodes())), 1)

    @requests_mock.Mocker()
    def test_server_error(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), status_code=500,
                     text='')

        with self.assertRaises(jenkins_graph.JenkinsAPIException):
            list(self.j.get_nodes())

    @requests_mock.Mocker()
    def test_get_executors(self, req_mock):
        req_mock.get(self.make_url('computer/api/json'), json=self.computers)
        req_mock.get(self.make_url('computer/%28master%29/api/json'),
                     json={u'executors': [{u'number': 0}]})
        req_mock.get(self.make_url('computer/agent%201/api/json'),
                     json=self.node_info)

        executors = list(self.j.get_executors())

        self.assertEqual(
            [(executor.node.name, executor.number) for executor in executors],
            [(u'master', 0), (u'agent 1', 0), (u'agent 1', 1)])
        self.assertEqual(req_mock.call_count, 3)


class JenkinsNodeTest(JenkinsNodesTestBase):

    @requests_mock.Mocker()
    def test_simple(self, req_mock):
        req_mock.get(self.make_url('computer/agent%201/api/json'),
                     json=self.node_info)

        node = self.j.get_node(u'agent 1')
        self.assertFalse(req_mock.called)

        self.assertTrue(node.is_offline())
        self.assertFalse(node.is_idle())
        self.assertEqual(node.get_num_executors(), 2)
        self.assertEqual(node.get_offline_reason(), u'disk full')
        self.assertEqual(req_mock.call_count, 1)
        self.assertEqual(req_mock.last_request.url,
                         self.make_url('computer/agent%201/api/json?depth=1'))

    @requests_mock.Mocker()
    def test_built_in_node(self, req_mock):
        req_mock.get(self.make_url('computer/%28built-in%29/api/json'),
                     json={u'displayName': u'Built-In Node', u'offline': False})

        node = self.j.get_node(u'Built-In Node')

        self.assertFalse(node.is_offline())
        self.assertEqual(req_mock.call_count, 1)

    @requests_mock.Mocker()
    def test_get_executors_refetches(self, req_mock):
        req_mock.get(self.make_url('computer/agent%201/api/json'), [
            {'json': self.node_info},
            {'json': dict(self.node_info, executors=[{u'number': 0}])},
        ])

        node = self.j.get_node(u'agent 1')
        first = list(node.get_executors())
        second = list(node.get_executors())

        self.assertEqual([executor.number for executor in first], [0, 1])
        self.assertEqual([executor.number for executor in second], [0])
        self.assertEqual(req_mock.call_count, 2)

    @requests_mock.Mocker()
    def test_executor_index_fallback(self, req_mock):
        req_mock.get(self.make_url('computer/agent%201/api/json'),
                     json={u'executors': [{}, {}, {}]})

        executors = list(self.j.get_node(u'agent 1').get_executors())

        self.assertEqual([executor.number for executor in executors],
                         [0, 1, 2])

    @requests_mock.Mocker()
    def test_toggle_offline(self, req_mock):
        req_mock.post(self.make_url('computer/agent%201/toggleOffline'),
                      text='')

        self.j.get_node(u'agent 1').toggle_offline(u'disk full')

        self.assertEqual(
            req_mock.last_request.url,
            self.make_url('computer/agent%201/toggleOffline'
                          '?offlineMessage=disk%20full'))
        self.assertEqual(req_mock.last_request.method, 'POST')

    def test_identity(self):
        self.assertEqual(self.j.get_node(u'agent 1'),
                         self.j.get_node(u'agent 1'))
        self.assertNotEqual(self.j.get_node(u'agent 1'),
                            self.j.get_node(u'agent 2'))


class JenkinsExecutorTest(JenkinsNodesTestBase):

    executor_info = {
        u'number': 1,
        u'idle': False,
        u'likelyStuck': False,
        u'progress': 42,
        u'currentExecutable': {
            u'number': 7,
            u'url': u'http://example.com/job/TestJob/7/',
        },
    }

    @requests_mock.Mocker()
    def test_simple(self, req_mock):
        req_mock.get(self.make_url('computer/agent%201/executors/1/api/json'),
                     json=self.executor_info)

        executor = self.j.get_node(u'agent 1').get_executor(1)
        self.assertFalse(req_mock.called)

        self.assertEqual(executor.get_number(), 1)
        self.assertEqual(executor.get_node(), self.j.get_node(u'agent 1'))
        self.assertEqual(executor.get_progress(), 42)
        self.assertFalse(executor.is_idle())
        self.assertFalse(executor.is_likely_stuck())
        self.assertEqual(executor.get_current_executable()[u'number'], 7)
        self.assertEqual(req_mock.call_count, 1)

    @requests_mock.Mocker()
    def test_stop(self, req_mock):
        req_mock.post(self.make_url('computer/agent%201/executors/1/stop'),
                      text='')

        self.j.get_node(u'agent 1').get_executor(1).stop()

        self.assertEqual(req_mock.last_request.url,
                         self.make_url('computer/agent%201/executors/1/stop'))

    def test_identity(self):
        node = self.j.get_node(u'agent 1')
        self.assertEqual(node.get_executor(0), node.get_executor(0))
        self.assertNotEqual(node.get_executor(0), node.get_executor(1))
        self.assertNotEqual(node.get_executor(0),
                            self.j.get_node(u'agent 2').get_executor(0))
