import json
import socketserver

import requests


class NullServer(socketserver.TCPServer):

    request_queue_size = 1

    def __init__(self, server_address, *args, **kwargs):
        # simply init'ing is sufficient to open the port, which
        # with the server not started creates a black hole server
        socketserver.TCPServer.__init__(
            self, server_address, socketserver.BaseRequestHandler,
            *args, **kwargs)


def build_response_mock(status_code, json_body=None, text=None, headers=None,
                        url=None, **kwargs):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = 'utf-8'

    if json_body is not None:
        text = json.dumps(json_body)
    response._content = (text or '').encode('utf-8')
    response.headers['content-length'] = str(len(response._content))

    if headers is not None:
        for k, v in headers.items():
            response.headers[k] = v

    for k, v in kwargs.items():
        setattr(response, k, v)

    return response
