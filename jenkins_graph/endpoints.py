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
.. module:: jenkins_graph.endpoints
    :platform: Unix, Windows
    :synopsis: REST endpoints of the Jenkins management API
'''

from urllib.parse import quote

# REST Endpoints
INFO = 'api/json'
CRUMB_URL = 'crumbIssuer/api/json'
BUILDING_JOBS = ('api/xml?tree=jobs[name,url,color]'
                 '&xpath=/hudson/job[ends-with(color/text(),%22_anime%22)]'
                 '&wrapper=jobs')
CREATE_JOB = '%(folder_url)screateItem?name=%(short_name)s'  # also post config.xml
CONFIG_JOB = '%(folder_url)sjob/%(short_name)s/config.xml'
QUIET_DOWN = 'quietDown'
CANCEL_QUIET_DOWN = 'cancelQuietDown'
COMPUTER = 'computer'

# Item paths, url_extension is appended for JSON reads
JOB = '%(folder_url)sjob/%(short_name)s'
ENABLE_JOB = JOB + '/enable'
DISABLE_JOB = JOB + '/disable'
DELETE_JOB = JOB + '/doDelete'
BUILD = JOB + '/%(number)s'
STOP_BUILD = BUILD + '/stop'
QUEUE = 'queue'
CANCEL_QUEUE = 'queue/cancelItem?id=%(id)s'
VIEW = 'view/%(name)s'
NODE = 'computer/%(name)s'
TOGGLE_OFFLINE = NODE + '/toggleOffline?offlineMessage=%(msg)s'
EXECUTOR = NODE + '/executors/%(number)s'
STOP_EXECUTOR = EXECUTOR + '/stop'

# Symbolic build numbers
LAST_BUILD = 'lastBuild'
LAST_SUCCESSFUL_BUILD = 'lastSuccessfulBuild'
LAST_FAILED_BUILD = 'lastFailedBuild'

# The built-in node is addressed by a fixed token instead of its name
BUILT_IN_NODES = {
    'master': '(master)',
    'Built-In Node': '(built-in)',
}

ENCODED_KEYS = ('name', 'msg', 'short_name', 'folder_url')


def get_job_folder(name):
    '''Return the folder path and short name of a job.

    A job name may address a job inside folders (cloudbees folder plugin),
    e.g. ``'folder/job'``.

    :param name: Job name, ``str``
    :returns: Tuple [ 'folder path for Request', 'Name of job without folder path' ]
    '''
    a_path = name.split('/')
    short_name = a_path[-1]
    folder_url = (('job/' + '/job/'.join(a_path[:-1]) + '/')
                  if len(a_path) > 1 else '')

    return folder_url, short_name


def format_path(format_spec, variables=None):
    '''Fill in a REST endpoint, URL quoting the name-like variables.'''
    if not variables:
        return format_spec
    params = dict(variables)
    for k, v in params.items():
        if k in ENCODED_KEYS:
            params[k] = quote(str(v).encode('utf8'))
    return format_spec % params
