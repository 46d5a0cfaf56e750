#!/usr/bin/env python
# Software License Agreement (BSD License)
#
# Copyright (c) 2010, Willow Garage, Inc.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions
# are met:
#
#  * Redistributions of source code must retain the above copyright
#    notice, this list of conditions and the following disclaimer.
#  * Redistributions in binary form must reproduce the above
#    copyright notice, this list of conditions and the following
#    disclaimer in the documentation and/or other materials provided
#    with the distribution.
#  * Neither the name of Willow Garage, Inc. nor the names of its
#    contributors may be used to endorse or promote products derived
#    from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
# 'AS IS' AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS
# FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE
# COPYRIGHT OWNER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING,
# BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN
# ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.
#

'''
.. module:: jenkins_graph.items
    :platform: Unix, Windows
    :synopsis: Jobs, builds, views, nodes, executors and the queue

Every item is created without talking to the server. The first accessor
that needs data fetches the item's JSON through the :class:`Jenkins` handle
it was created with and keeps it; use :meth:`JenkinsItem.refresh` (or a new
item) to see newer state.
'''

import logging

from jenkins_graph import endpoints
from jenkins_graph.exceptions import JenkinsAPIException

logger = logging.getLogger(__name__)


class JenkinsItem(object):
    '''Base of all lazily loaded items.

    :param jenkins: the :class:`Jenkins` used to look things up; items never
        own each other, they only keep this handle.
    '''

    depth = 1

    def __init__(self, jenkins):
        self._jenkins = jenkins
        self._data = None

    def _key(self):
        raise NotImplementedError

    def get_path(self):
        '''Path of this item relative to the server URL.'''
        raise NotImplementedError

    def _fetch(self):
        return self._jenkins.fetch_json(
            self.get_path() + self._jenkins.url_extension, depth=self.depth)

    @property
    def data(self):
        '''The item's JSON description, fetched on first access.'''
        if self._data is None:
            # only keep successful loads, a failure is retried next time
            self._data = self._fetch()
        return self._data

    def refresh(self):
        self._data = self._fetch()
        return self

    def get(self, key, default=None):
        return self.data.get(key, default)

    @property
    def url(self):
        return self.get('url')

    def _submit(self, format_spec, variables=None, data=None):
        return self._jenkins.submit(
            endpoints.format_path(format_spec, variables), data=data)

    def __eq__(self, other):
        return type(self) is type(other) and self._key() == other._key()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self).__name__, self._key()))

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self._key())


class Job(JenkinsItem):
    '''A job, optionally inside a folder given by ``project``.'''

    def __init__(self, name, jenkins, project=None):
        super(Job, self).__init__(jenkins)
        self.name = name
        self.project = project

    @property
    def full_name(self):
        if self.project:
            return '/'.join((self.project, self.name))
        return self.name

    def _key(self):
        return self.full_name

    def _path_vars(self):
        folder_url, short_name = endpoints.get_job_folder(self.full_name)
        return {'folder_url': folder_url, 'short_name': short_name}

    def get_path(self):
        return endpoints.format_path(endpoints.JOB, self._path_vars())

    def get_color(self):
        return self.get('color')

    def get_description(self):
        return self.get('description')

    def is_buildable(self):
        return bool(self.get('buildable'))

    def is_building(self):
        '''Jenkins animates the status icon of running jobs.'''
        color = self.get_color()
        return bool(color) and color.endswith('_anime')

    def get_next_build_number(self):
        return self.get('nextBuildNumber')

    def get_builds(self):
        '''Get the builds Jenkins reports for this job, newest first.

        :returns: ``[Build]``
        '''
        return [self.get_build(build['number'])
                for build in self.get('builds') or []]

    def get_build(self, number):
        return Build(number, self, self._jenkins)

    def get_last_build(self):
        return LastBuild(self, self._jenkins)

    def get_last_successful_build(self):
        return self.get_build(endpoints.LAST_SUCCESSFUL_BUILD)

    def get_last_failed_build(self):
        return self.get_build(endpoints.LAST_FAILED_BUILD)

    def get_config(self):
        '''Get the job's ``config.xml``.

        :returns: job configuration (XML format), ``str``
        '''
        path = endpoints.format_path(endpoints.CONFIG_JOB, self._path_vars())
        return self._jenkins.fetch_raw(path).decode('utf-8')

    def update(self, config_xml):
        self._jenkins.update_job(self.name, config_xml, project=self.project)

    def enable(self):
        self._submit(endpoints.ENABLE_JOB, self._path_vars())

    def disable(self):
        self._submit(endpoints.DISABLE_JOB, self._path_vars())

    def delete(self):
        self._submit(endpoints.DELETE_JOB, self._path_vars())


class Build(JenkinsItem):
    '''One build of a job.

    ``number`` is either the build number or one of Jenkins' symbolic
    permalinks such as ``'lastSuccessfulBuild'``; :meth:`get_number` always
    returns the resolved number.
    '''

    def __init__(self, number, job, jenkins):
        super(Build, self).__init__(jenkins)
        if not isinstance(job, Job):
            job = Job(job, jenkins)
        self.job = job
        self.number = number

    def _key(self):
        return (self.job.full_name, self.number)

    def _path_vars(self):
        path_vars = self.job._path_vars()
        path_vars['number'] = self.number
        return path_vars

    def get_path(self):
        return endpoints.format_path(endpoints.BUILD, self._path_vars())

    def get_job(self):
        return self.job

    def get_number(self):
        return self.get('number')

    def get_result(self):
        '''``'SUCCESS'``, ``'FAILURE'``, ... or None while building.'''
        return self.get('result')

    def is_building(self):
        return bool(self.get('building'))

    def get_timestamp(self):
        return self.get('timestamp')

    def get_duration(self):
        return self.get('duration')

    def get_estimated_duration(self):
        return self.get('estimatedDuration')

    def get_built_on(self):
        return self.get('builtOn')

    def _actions(self, key):
        for action in self.get('actions') or []:
            if action and key in action:
                yield action[key]

    def get_parameters(self):
        '''Get the parameters the build was started with.

        :returns: values by parameter name, ``dict``
        '''
        parameters = {}
        for action_parameters in self._actions('parameters'):
            for parameter in action_parameters:
                parameters[parameter['name']] = parameter.get('value')
        return parameters

    def get_causes(self):
        return [cause for causes in self._actions('causes')
                for cause in causes]

    def stop(self):
        self._submit(endpoints.STOP_BUILD, self._path_vars())


class LastBuild(Build):
    '''The most recent build of a job, whatever its number.'''

    def __init__(self, job, jenkins):
        super(LastBuild, self).__init__(endpoints.LAST_BUILD, job, jenkins)


class Queue(JenkinsItem):
    '''The build queue of the server.'''

    def _key(self):
        return self._jenkins.server

    def get_path(self):
        return endpoints.QUEUE

    def get_items(self):
        '''Get the waiting build requests.

        :returns: ``[QueueItem]``
        '''
        return [QueueItem(item, self._jenkins)
                for item in self.get('items') or []]


class QueueItem(JenkinsItem):
    '''A waiting build request, as listed by the :class:`Queue`.'''

    def __init__(self, data, jenkins):
        super(QueueItem, self).__init__(jenkins)
        self._data = data
        self.id = data['id']

    def _key(self):
        return self.id

    def get_path(self):
        return 'queue/item/%d' % self.id

    def get_why(self):
        return self.get('why')

    def is_blocked(self):
        return bool(self.get('blocked'))

    def is_buildable(self):
        return bool(self.get('buildable'))

    def is_stuck(self):
        return bool(self.get('stuck'))

    def get_job(self):
        task = self.get('task') or {}
        return Job(task['name'], self._jenkins)

    def cancel(self):
        '''Cancel the build request.'''
        try:
            self._submit(endpoints.CANCEL_QUEUE, {'id': self.id})
        except JenkinsAPIException as e:
            # Jenkins seems to always return a 404 when using this REST endpoint
            # https://issues.jenkins-ci.org/browse/JENKINS-21311
            if e.status_code != 404:
                raise
            logger.debug('ignoring 404 cancelling queue item[%s]', self.id)


class View(JenkinsItem):

    def __init__(self, name, jenkins):
        super(View, self).__init__(jenkins)
        self.name = name

    def _key(self):
        return self.name

    def get_path(self):
        return endpoints.format_path(endpoints.VIEW, {'name': self.name})

    def get_description(self):
        return self.get('description')

    def get_jobs(self):
        '''Get the jobs shown in this view.

        :returns: ``[Job]``
        '''
        return [Job(job['name'], self._jenkins)
                for job in self.get('jobs') or []]


class Node(JenkinsItem):
    '''A build agent, identified by its display name.'''

    def __init__(self, name, jenkins):
        super(Node, self).__init__(jenkins)
        self.name = name

    def _key(self):
        return self.name

    def _path_vars(self):
        return {'name': endpoints.BUILT_IN_NODES.get(self.name, self.name)}

    def get_path(self):
        return endpoints.format_path(endpoints.NODE, self._path_vars())

    def is_offline(self):
        return bool(self.get('offline'))

    def is_idle(self):
        return bool(self.get('idle'))

    def get_num_executors(self):
        return self.get('numExecutors')

    def get_offline_reason(self):
        return self.get('offlineCauseReason')

    def get_executors(self):
        '''Yield the executors of this node.

        The node is fetched again on every call, so the executors reflect
        the current state of the server.
        '''
        data = self._fetch()
        for index, executor in enumerate(data.get('executors') or []):
            yield Executor(executor.get('number', index), self, self._jenkins)

    def get_executor(self, number):
        return Executor(number, self, self._jenkins)

    def toggle_offline(self, message=''):
        '''Take the node offline, or bring it back online.'''
        path_vars = self._path_vars()
        path_vars['msg'] = message
        self._submit(endpoints.TOGGLE_OFFLINE, path_vars)


class Executor(JenkinsItem):
    '''A single build slot of a :class:`Node`.'''

    def __init__(self, number, node, jenkins):
        super(Executor, self).__init__(jenkins)
        self.node = node
        self.number = number

    def _key(self):
        return (self.node.name, self.number)

    def _path_vars(self):
        path_vars = self.node._path_vars()
        path_vars['number'] = self.number
        return path_vars

    def get_path(self):
        return endpoints.format_path(endpoints.EXECUTOR, self._path_vars())

    def get_node(self):
        return self.node

    def get_number(self):
        return self.number

    def get_progress(self):
        '''Percentage done of the current build, -1 when idle.'''
        return self.get('progress')

    def is_idle(self):
        return bool(self.get('idle'))

    def is_likely_stuck(self):
        return bool(self.get('likelyStuck'))

    def get_current_executable(self):
        '''The ``number`` and ``url`` of the running build, if any.'''
        return self.get('currentExecutable')

    def stop(self):
        self._submit(endpoints.STOP_EXECUTOR, self._path_vars())
