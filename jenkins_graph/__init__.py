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
.. module:: jenkins_graph
    :platform: Unix, Windows
    :synopsis: Lazy, navigable access to the Jenkins management API
    :noindex:

The :class:`Jenkins` object is the only thing that talks to the server.
Jobs, builds, views, nodes, executors and the queue are thin wrappers
(see :mod:`jenkins_graph.items`) that call back into it for their JSON.
'''

import collections
import logging
import os
import threading
import xml.etree.ElementTree as ET
from urllib.parse import urlencode, urljoin

import requests
import requests.exceptions as req_exc
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from jenkins_graph.endpoints import (
    BUILDING_JOBS, CANCEL_QUIET_DOWN, COMPUTER, CONFIG_JOB, CREATE_JOB,
    CRUMB_URL, INFO, QUIET_DOWN, format_path, get_job_folder)
from jenkins_graph.exceptions import (
    CrumbException, JenkinsAPIException, JenkinsException,
    JobExistsException, TimeoutException, TransportException)
from jenkins_graph.items import (  # noqa: F401
    Build, Executor, Job, JenkinsItem, LastBuild, Node, Queue, QueueItem,
    View)

# Set default logging handler to avoid "No handler found" warnings.
logging.getLogger(__name__).addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {'Content-Type': 'text/xml; charset=utf-8'}

Crumb = collections.namedtuple('Crumb', ['field', 'value'])


class WrappedSession(requests.Session):
    """A wrapper for requests.Session to override 'verify' property, ignoring REQUESTS_CA_BUNDLE environment variable.

    This is a workaround for https://github.com/kennethreitz/requests/issues/3829 (will be fixed in requests 3.0.0)
    """

    def merge_environment_settings(self, url, proxies, stream, verify, *args,
                                   **kwargs):
        if self.verify is False:
            verify = False

        return super(WrappedSession, self).merge_environment_settings(url,
                                                                      proxies,
                                                                      stream,
                                                                      verify,
                                                                      *args,
                                                                      **kwargs)


class Jenkins(object):
    FORMAT_OBJECT = 'asObject'
    FORMAT_XML = 'asXml'

    def __init__(self, url, username=None, password=None, proxy=None,
                 request_options=None, timeout=None):
        '''Create handle to Jenkins instance.

        Nothing is requested from the server until a method needs it.

        :param url: URL of Jenkins server, ``str``
        :param username: Server username, ``str``
        :param password: Server password, ``str``
        :param proxy: URL of a proxy to send all requests through, ``str``
        :param request_options: keyword arguments for
            ``requests.Session.send``, applied after (and so overriding)
            the defaults set here, ``dict``
        :param timeout: Server connection timeout in secs (default: not set), ``int``
        '''
        self.server = url
        self.url_extension = '/api/json'
        self.verbose = False
        self.timeout = timeout
        self.request_options = dict(request_options or {})

        self.crumb = None
        self._crumbs_enabled = False
        self._crumb_lock = threading.Lock()

        self._session = WrappedSession()
        if username:
            self._session.auth = requests.auth.HTTPBasicAuth(
                username.encode('utf-8'), (password or '').encode('utf-8'))
        if proxy:
            self._session.proxies = {'http': proxy, 'https': proxy}

        extra_headers = os.environ.get("JENKINS_API_EXTRA_HEADERS", "")
        if extra_headers:
            logger.warning("JENKINS_API_EXTRA_HEADERS adds these HTTP headers: %s", extra_headers.split("\n"))
        for token in extra_headers.split("\n"):
            if ":" in token:
                header, value = token.split(":", 1)
                self._session.headers[header] = value.strip()

        # TLS certificates are not verified
        requests.packages.urllib3.disable_warnings(InsecureRequestWarning)
        self._session.verify = False

    @property
    def server(self):
        '''Base URL of the server, always ending with ``/``.'''
        return self._server

    @server.setter
    def server(self, url):
        if url[-1] == '/':
            self._server = url
        else:
            self._server = url + '/'

    @property
    def auth(self):
        return self._session.auth

    def _build_url(self, format_spec, variables=None):
        url_path = format_path(format_spec, variables)
        return str(urljoin(self.server, url_path.lstrip('/')))

    def _build_query_url(self, path, depth, params=None):
        url = self._build_url(path)
        url += ('&' if '?' in url else '?') + 'depth=%s' % depth
        if params:
            url += '&' + urlencode(params)
        return url

    def _request(self, req):

        r = self._session.prepare_request(req)
        logger.debug('%s %s', r.method, r.url)
        # requests.Session.send() does not honor env settings,
        # see https://github.com/requests/requests/issues/2807
        _settings = self._session.merge_environment_settings(
            r.url, dict(self._session.proxies), None, self._session.verify,
            None)
        _settings['timeout'] = self.timeout
        _settings.update(self.request_options)
        return self._session.send(r, **_settings)

    def _response_handler(self, response):
        '''Handle response objects'''

        if not 200 <= response.status_code < 300:
            raise JenkinsAPIException(
                'Error in request [%s]: %s %s' % (
                    response.url, response.status_code, response.reason),
                url=response.url, status_code=response.status_code)

        return response

    def jenkins_open(self, req, add_crumb=False):
        '''Return the HTTP response body from a ``requests.Request``.

        :returns: ``str``
        '''
        return self.jenkins_request(req, add_crumb).text

    def jenkins_request(self, req, add_crumb=False):
        '''Utility routine for opening an HTTP request to a Jenkins server.

        :param req: A ``requests.Request`` to submit.
        :param add_crumb: If True, add the crumb header to this ``req`` when
                          crumbs are enabled. Defaults to ``False``.
        :returns: A ``requests.Response`` object.
        :throws: :class:`JenkinsAPIException` on non-2xx responses,
                 :class:`TransportException` when no response was received
        '''
        if add_crumb:
            self.maybe_add_crumb(req)
        try:
            return self._response_handler(self._request(req))
        except req_exc.Timeout as e:
            raise TimeoutException('Error in request [%s]: %s' % (req.url, e),
                                   url=req.url, cause=e)
        except req_exc.RequestException as e:
            raise TransportException(
                'Error in request [%s]: %s' % (req.url, e),
                url=req.url, cause=e)

    def request_crumb(self):
        '''Ask the server for a fresh anti-CSRF crumb.

        :returns: :class:`Crumb`
        :throws: :class:`CrumbException` whenever no crumb could be read
        '''
        url = self._build_url(CRUMB_URL)
        try:
            response = self.jenkins_request(requests.Request('GET', url))
            crumb_result = response.json()
        except (JenkinsException, ValueError) as e:
            raise CrumbException('Error getting csrf crumb: %s' % e, url=url)

        if not isinstance(crumb_result, dict):
            raise CrumbException('Error during decoding of csrf crumb',
                                 url=url)
        try:
            crumb = Crumb(crumb_result['crumbRequestField'],
                          crumb_result['crumb'])
        except KeyError as e:
            raise CrumbException('csrf crumb is missing %s' % e, url=url)
        if not all(isinstance(part, str) and part for part in crumb):
            raise CrumbException('Invalid csrf crumb %r' % (crumb,), url=url)
        return crumb

    def enable_crumbs(self):
        '''Send an anti-CSRF crumb with every POST from now on.

        Servers without CSRF protection do not issue crumbs; in that case
        crumbs simply stay disabled.
        '''
        try:
            crumb = self.request_crumb()
        except CrumbException as e:
            logger.warning('Crumbs stay disabled for server[%s]: %s',
                           self.server, e)
            with self._crumb_lock:
                self._crumbs_enabled = False
            return

        with self._crumb_lock:
            self.crumb = crumb
            self._crumbs_enabled = True

    def disable_crumbs(self):
        '''Stop sending crumbs. The last crumb is kept, but unused.'''
        with self._crumb_lock:
            self._crumbs_enabled = False

    def are_crumbs_enabled(self):
        return self._crumbs_enabled

    def get_crumb_header(self):
        '''Return the crumb as a ``"<field>: <value>"`` header line.'''
        crumb = self.crumb
        if crumb is None:
            return None
        return '%s: %s' % (crumb.field, crumb.value)

    def maybe_add_crumb(self, req):
        with self._crumb_lock:
            enabled, crumb = self._crumbs_enabled, self.crumb
        if enabled and crumb:
            req.headers[crumb.field] = crumb.value

    def fetch_json(self, path, depth=1, params=None):
        '''Get the JSON object found at ``path``.

        :param path: path relative to the server URL, ``str``
        :param depth: JSON depth, ``int``
        :param params: additional query parameters, ``dict``
        :returns: decoded JSON, ``dict``
        :throws: :class:`JenkinsAPIException` unless the server answered 200
            with a JSON object
        '''
        url = self._build_query_url(path, depth, params)
        response = self.jenkins_request(requests.Request('GET', url))
        if response.status_code != 200:
            raise JenkinsAPIException(
                'Error during getting information from url %s (Response: %s)'
                % (url, response.status_code),
                url=url, status_code=response.status_code)
        try:
            data = response.json()
        except ValueError:
            raise JenkinsAPIException(
                'Could not parse JSON info for url[%s]' % url, url=url,
                status_code=response.status_code)
        if not isinstance(data, dict):
            raise JenkinsAPIException(
                'Expected a JSON object from url[%s]' % url, url=url,
                status_code=response.status_code)
        return data

    def fetch_raw(self, path, depth=1, params=None):
        '''Get the undecoded body found at ``path``.

        :returns: response body, ``bytes``
        '''
        url = self._build_query_url(path, depth, params)
        response = self.jenkins_request(requests.Request('GET', url))
        if response.status_code != 200:
            raise JenkinsAPIException(
                'Error during getting information from url %s (Response: %s)'
                % (url, response.status_code),
                url=url, status_code=response.status_code)
        return response.content

    def submit(self, path, data=None, headers=None):
        '''POST to ``path``, carrying the crumb when crumbs are enabled.

        :param path: path relative to the server URL, ``str``
        :param data: XML text (sent as ``text/xml``) or a ``dict`` of form
            fields
        :param headers: additional HTTP headers, ``dict``
        :returns: response body, ``str``
        '''
        req_headers = {}
        if isinstance(data, str):
            data = data.encode('utf-8')
        if isinstance(data, bytes):
            req_headers.update(DEFAULT_HEADERS)
        if headers:
            req_headers.update(headers)

        url = self._build_url(path)
        response = self.jenkins_request(
            requests.Request('POST', url, data=data, headers=req_headers),
            add_crumb=True)
        if response.status_code != 200:
            raise JenkinsAPIException(
                'Error posting to url %s (Response: %s)'
                % (url, response.status_code),
                url=url, status_code=response.status_code)
        return response.text

    def _availability_error(self):
        '''Return why the server is unusable, or None if it is usable.'''
        url = self._build_url(INFO)
        try:
            self._request(requests.Request('GET', url))
        except req_exc.RequestException as e:
            return TransportException(
                'Error in request [%s]: %s' % (url, e), url=url, cause=e)

        try:
            self.get_queue().refresh()
        except JenkinsException as e:
            return e
        return None

    def is_available(self):
        '''Check whether the server answers and serves its queue.

        :returns: ``True`` if Jenkins is usable
        '''
        error = self._availability_error()
        if error is not None:
            logger.debug('server[%s] is not available: %s', self.server, error)
            return False
        return True

    def get_info(self):
        '''Get the JSON description of the server itself.

        This includes the job list and view information.

        :returns: dictionary of information about the server, ``dict``
        '''
        return self.fetch_json(self.url_extension)

    def get_job(self, name, project=None):
        '''Get a job.

        :param name: Job name, ``str``
        :param project: path of the folder holding the job, ``str``
        :returns: :class:`Job`
        '''
        return Job(name, self, project=project)

    def get_jobs(self):
        '''Get all top level jobs.

        :returns: jobs by name, ``{str: Job}``
        '''
        data = self.get_info()
        jobs = {}
        for job in data.get('jobs', []):
            jobs[job['name']] = self.get_job(job['name'])
        return jobs

    def get_build(self, job, number):
        '''Get a build of a job.

        :param job: Job name or :class:`Job`
        :param number: Build number or a symbolic name such as
            ``'lastBuild'``, ``int`` or ``str``
        :returns: :class:`Build`
        '''
        return Build(number, job, self)

    def get_queue(self):
        return Queue(self)

    def get_view(self, name):
        return View(name, self)

    def get_views(self):
        '''Get all views.

        :returns: list of views, ``[View]``
        '''
        data = self.get_info()
        return [self.get_view(view['name']) for view in data.get('views', [])]

    def get_primary_view(self):
        '''Get the view shown by default.

        :returns: :class:`View`, or None if the server does not report one
        '''
        data = self.get_info()
        if 'primaryView' not in data:
            return None
        return self.get_view(data['primaryView']['name'])

    def get_node(self, name):
        return Node(name, self)

    def get_nodes(self):
        '''Yield every node of the server.

        Each call fetches the node list again.
        '''
        data = self.fetch_json(COMPUTER + self.url_extension)
        for node in data.get('computer', []):
            yield self.get_node(node['displayName'])

    def get_executors(self):
        '''Yield every executor of every node.

        Each call fetches the node list and every node again.
        '''
        for node in self.get_nodes():
            for executor in node.get_executors():
                yield executor

    def get_currently_building_jobs(self, output_format=FORMAT_OBJECT):
        '''Get the jobs with a build in progress.

        :param output_format: ``Jenkins.FORMAT_OBJECT`` for :class:`Job`
            objects, ``Jenkins.FORMAT_XML`` for the ``job`` elements of the
            server response
        :returns: ``[Job]`` or ``[xml.etree.ElementTree.Element]``
        :throws: ``ValueError`` for an unknown ``output_format``
        '''
        if output_format not in (self.FORMAT_OBJECT, self.FORMAT_XML):
            raise ValueError('Output format "%s" is unknown!' % output_format)

        url = self._build_url(BUILDING_JOBS)
        response = self.jenkins_request(requests.Request('GET', url))
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise JenkinsAPIException(
                'Could not parse XML from url[%s]: %s' % (url, e), url=url,
                status_code=response.status_code)

        jobs = []
        for job in root.findall('job'):
            color = job.findtext('color')
            if color is not None and not color.endswith('_anime'):
                continue
            if not job.findtext('name'):
                logger.debug('skipping job without a name from url[%s]', url)
                continue
            jobs.append(job)

        if output_format == self.FORMAT_XML:
            return jobs
        return [self.get_job(job.findtext('name')) for job in jobs]

    def get_last_builds_from_currently_building_jobs(self):
        '''Get the last build of every job with a build in progress.

        :returns: ``[LastBuild]``
        '''
        return [job.get_last_build()
                for job in self.get_currently_building_jobs()]

    def _post_job(self, format_spec, name, config_xml, project):
        folder_url, short_name = get_job_folder(
            '/'.join((project, name)) if project else name)
        return self.submit(format_path(format_spec, locals()),
                           data=config_xml)

    def create_job(self, name, config_xml, project=None):
        '''Create a new Jenkins job

        :param name: Name of Jenkins job, ``str``
        :param config_xml: config file text, ``str``
        :param project: path of the folder to create the job in, ``str``
        :throws: :class:`JobExistsException` when Jenkins refuses the job
        '''
        try:
            self._post_job(CREATE_JOB, name, config_xml, project)
        except JenkinsAPIException as e:
            raise JobExistsException('job[%s] already exists' % name,
                                     url=e.url,
                                     status_code=e.status_code) from e

    def update_job(self, name, config_xml, project=None):
        '''Change the configuration of an existing job.

        :param name: Name of Jenkins job, ``str``
        :param config_xml: New XML configuration, ``str``
        :param project: path of the folder holding the job, ``str``
        '''
        self._post_job(CONFIG_JOB, name, config_xml, project)

    def prepare_shutdown(self):
        '''Prepare Jenkins for shutdown.

        No new builds will be started allowing running builds to complete
        prior to shutdown of the server.
        '''
        self.submit(QUIET_DOWN)

    def cancel_prepare_shutdown(self):
        '''Let Jenkins start new builds again after :meth:`prepare_shutdown`.'''
        self.submit(CANCEL_QUIET_DOWN)
