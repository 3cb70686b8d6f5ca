import json
import logging
import requests
from urllib.parse import quote as url_quote

TOGGL_URL = 'https://api.track.toggl.com/api'
TOGGL_API_VERSION = 'v9'

KEY_ID          = 'id'
KEY_DATA        = 'data'
KEY_PID         = 'pid'
KEY_UID         = 'uid'
KEY_WID         = 'wid'
KEY_PROJECT_ID  = 'project_id'
KEY_USER_ID     = 'user_id'
KEY_WORKSPACE_ID = 'workspace_id'
KEY_MANAGER     = 'manager'
KEY_RATE        = 'rate'
KEY_FULLNAME    = 'fullname'
KEY_AT          = 'at'
KEY_FIELDS      = 'fields'
KEY_PROJUSER    = 'project_user'

METHOD_GET      = 'GET'
METHOD_POST     = 'POST'
METHOD_PUT      = 'PUT'
METHOD_DELETE   = 'DELETE'

logger = logging.getLogger(__name__)


def join_ids(ids):
    """Joins a list of ids into the comma separated form used in URLs
    and bodies. A single id (or an already joined string) is passed
    through as a string."""
    if isinstance(ids, (str, int)):
        return str(ids)
    return ','.join(str(i) for i in ids)


def join_fields(fields):
    """Returns the comma joined field selector, or None when there is
    nothing to select. A plain string is a single field name."""
    if not fields:
        return None
    if isinstance(fields, str):
        return fields
    return ','.join(fields)


def unwrap_data(result):
    """Batch calls answer with the records under a 'data' key."""
    if isinstance(result, dict):
        return result.get(KEY_DATA)
    return result


class TogglRequest:
    """A single API call: HTTP method plus optional JSON body."""

    def __init__(self, method, body=None):
        self._method = method
        self._body = body

    @property
    def method(self):
        return self._method

    @property
    def body(self):
        return self._body

    def __eq__(self, other):
        if not isinstance(other, TogglRequest):
            return NotImplemented
        return self.method == other.method and self.body == other.body

    def __repr__(self):
        return 'TogglRequest(%r, %r)' % (self.method, self.body)


class TogglApi:
    def __init__(self, url, auth, api_version=TOGGL_API_VERSION, verbose=False,
                 timeout=None):
        self.base_url = '%s/%s' % (url, api_version)
        self.auth = auth
        self.verbose = verbose
        self.timeout = timeout
        self.headers = {'content-type': 'application/json'}

    def _log(self, msg, *args):
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)

    def _raise_if_error(self, r):
        if not r.ok:
            logger.error("Error reason: %s", r.text)
        r.raise_for_status()

    def api_request(self, path, req):
        """Sends the request to the given path below the API root and
        returns the decoded JSON response (None for an empty body)."""

        url = '%s/%s' % (self.base_url, path)
        data = None
        if req.body is not None:
            data = json.dumps(req.body)

        self._log('%s %s', req.method, url)
        if data is not None:
            self._log('%s', data)

        r = requests.request(req.method, url, auth=self.auth, data=data,
            headers=self.headers, timeout=self.timeout)
        self._raise_if_error(r)

        self._log('%s', r.text)

        if not r.text:
            return None
        return json.loads(r.text)

    def get_project_users(self, workspace_id, project_id=None):
        """Fetches the project users of a workspace, or of one of its
        projects."""

        if project_id is None:
            path = 'workspaces/%s/project_users' % url_quote(str(workspace_id))
        else:
            path = 'workspaces/%s/projects/%s/project_users' % \
                    (url_quote(str(workspace_id)), url_quote(str(project_id)))

        result = self.api_request(path, TogglRequest(METHOD_GET))
        if result is None:
            return []
        if isinstance(result, dict):
            result = result.get(KEY_DATA) or []
        return [TogglProjectUser(pu) for pu in result]

    def add_project_user(self, project_id, user_id, workspace_id, options=None,
                         fields=None):
        """Adds a user to a project.

        options holds extra project user attributes (manager, rate, ...).
        A list given in place of options, with no fields, is taken to be
        the field selector. pid and uid always come from the arguments.
        """

        if isinstance(options, (list, tuple)) and fields is None:
            fields = options
            options = None

        data = dict(options or {})
        data[KEY_PID] = project_id
        data[KEY_UID] = user_id

        joined = join_fields(fields)
        if joined is not None:
            data[KEY_FIELDS] = joined

        req = TogglRequest(METHOD_POST, { KEY_PROJUSER : data })
        path = 'workspaces/%s/project_users' % url_quote(str(workspace_id))

        return self.api_request(path, req)

    def add_project_users(self, project_id, user_ids, workspace_id, options=None,
                          fields=None):
        """Adds several users to one project in a single call and returns
        the list of created project users."""

        return unwrap_data(self.add_project_user(project_id, join_ids(user_ids),
            workspace_id, options, fields))

    def update_project_user(self, pu_id, workspace_id, options, fields=None):
        """Updates a project user with the given attributes."""

        data = dict(options)

        joined = join_fields(fields)
        if joined is not None:
            data[KEY_FIELDS] = joined

        req = TogglRequest(METHOD_PUT, { KEY_PROJUSER : data })
        path = 'workspaces/%s/project_users/%s' % \
                (url_quote(str(workspace_id)), url_quote(str(pu_id), safe=','))

        return self.api_request(path, req)

    def update_project_users(self, pu_ids, workspace_id, options, fields=None):
        """Mass update of project users; returns the updated records."""

        return unwrap_data(self.update_project_user(join_ids(pu_ids),
            workspace_id, options, fields))

    def delete_project_user(self, pu_id, workspace_id):
        """Deletes the project user with the specified id"""

        path = 'workspaces/%s/project_users/%s' % \
                (url_quote(str(workspace_id)), url_quote(str(pu_id), safe=','))

        return self.api_request(path, TogglRequest(METHOD_DELETE))

    def delete_project_users(self, pu_ids, workspace_id):
        """Deletes all the given project users in a single call."""

        return self.delete_project_user(join_ids(pu_ids), workspace_id)


class TogglObject(object):
    def __init__(self, fields=None):
        if fields is not None:
            self.fields = fields
        else:
            self.fields = {}
            self.fields[KEY_ID] = None

    @property
    def id(self):
        return self.fields.get(KEY_ID)

    def to_json(self):
        return self.fields


class TogglProjectUser(TogglObject):
    def __init__(self, fields=None):
        TogglObject.__init__(self, fields)
        if fields is None:
            self.pid = None
            self.uid = None
            self.manager = False
            self.rate = None

    @property
    def pid(self):
        return self.fields.get(KEY_PID, self.fields.get(KEY_PROJECT_ID))

    @pid.setter
    def pid(self, value):
        self.fields[KEY_PID] = value

    @property
    def uid(self):
        return self.fields.get(KEY_UID, self.fields.get(KEY_USER_ID))

    @uid.setter
    def uid(self, value):
        self.fields[KEY_UID] = value

    @property
    def wid(self):
        return self.fields.get(KEY_WID, self.fields.get(KEY_WORKSPACE_ID))

    @property
    def manager(self):
        return self.fields.get(KEY_MANAGER, False)

    @manager.setter
    def manager(self, value):
        self.fields[KEY_MANAGER] = value

    @property
    def rate(self):
        return self.fields.get(KEY_RATE)

    @rate.setter
    def rate(self, value):
        self.fields[KEY_RATE] = value

    @property
    def fullname(self):
        return self.fields.get(KEY_FULLNAME)

    @property
    def at(self):
        return self.fields.get(KEY_AT)

    def options(self):
        """The writable attributes, in the shape add/update expect."""
        return dict((k, v) for k, v in self.fields.items()
                    if k in (KEY_MANAGER, KEY_RATE) and v is not None)
