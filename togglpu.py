#!/usr/bin/env python
"""
togglpu.py

Command line management of Toggl project users: list, add, update and
remove the users assigned to the projects of a workspace.
"""

from libtogglpu import *

import argparse
import configparser
import json
import logging
import os
import sys

import pytz
import requests
import dateutil.parser as date_parser

DEFAULT_CFG_PATH = '~/.togglrc'
DEFAULT_ENTRY_DATEFMT = '%Y-%m-%d %H:%M%p'

logger = logging.getLogger(__name__)

toggl_cfg = None
toggl = None


def json_format(text):
    return json.dumps(text, sort_keys=False, indent=4, separators=(',', ':'))

def parse_id_list(value):
    """Splits a comma separated list of ids, dropping blanks."""
    return [v.strip() for v in value.split(',') if v.strip()]

def parse_bool(value):
    if value.lower() in ('1', 'true', 'yes', 'y', 'on'):
        return True
    if value.lower() in ('0', 'false', 'no', 'n', 'off'):
        return False
    raise argparse.ArgumentTypeError("Expected true or false, got '%s'" % value)

def get_workspace(args):
    """Workspace from the command line, falling back to the configured
    default."""
    if args.workspace:
        return args.workspace
    if toggl_cfg is not None and toggl_cfg.has_option('options', 'workspace'):
        return toggl_cfg.get('options', 'workspace')
    return None

def format_time(timestr):
    """Formats an API timestamp in the configured timezone."""
    if not timestr:
        return ""
    tz = pytz.utc
    date_fmt = DEFAULT_ENTRY_DATEFMT
    if toggl_cfg is not None:
        if toggl_cfg.has_option('options', 'timezone'):
            tz = pytz.timezone(toggl_cfg.get('options', 'timezone'))
        if toggl_cfg.has_option('options', 'entry_datefmt'):
            date_fmt = toggl_cfg.get('options', 'entry_datefmt')
    t = date_parser.parse(timestr)
    if t.tzinfo is None:
        t = pytz.utc.localize(t)
    return t.astimezone(tz).strftime(date_fmt)

def format_project_user(pu, verbose=False):
    manager = ' (manager)' if pu.manager else ''
    rate = ''
    if pu.rate is not None:
        rate = ' rate: %s' % pu.rate
    name = pu.fullname if pu.fullname else 'user %s' % pu.uid
    if verbose:
        return "[%s] %s @project %s%s%s (%s)" % (pu.id, name, pu.pid, manager,
                rate, format_time(pu.at))
    return "%s @project %s%s%s" % (name, pu.pid, manager, rate)

def build_options(args):
    """Collects the project user attributes given on the command line."""
    pu = TogglProjectUser({})
    if args.manager is not None:
        pu.manager = args.manager
    if args.rate is not None:
        pu.rate = args.rate
    return pu.options()

def list_project_users(args):
    """List the project users of a workspace or project."""
    wid = get_workspace(args)
    if wid is None:
        print("Workspace ID is required to list project users!")
        return False

    pu_list = toggl.get_project_users(wid, args.proj)
    for pu in pu_list:
        print("* %s" % format_project_user(pu, verbose=args.verbose_list))
    print("Total project users: %d" % len(pu_list))
    return True

def add_project_users(args):
    """Adds one or more users to a project."""
    wid = get_workspace(args)
    if wid is None:
        print("-w is required when adding project users")
        return False

    uids = parse_id_list(args.users)
    if not uids:
        print("At least one user id is required!")
        return False

    options = build_options(args)
    fields = parse_id_list(args.fields) if args.fields else None

    if len(uids) == 1:
        resp = toggl.add_project_user(args.proj, uids[0], wid, options, fields)
        print("Added user %s to project %s" % (uids[0], args.proj))
    else:
        resp = toggl.add_project_users(args.proj, uids, wid, options, fields)
        print("Added %d users to project %s" % (len(uids), args.proj))

    logger.debug(json_format(resp))
    return True

def update_project_users(args):
    """Updates the attributes of one or more project users."""
    wid = get_workspace(args)
    if wid is None:
        print("-w is required when updating project users")
        return False

    ids = parse_id_list(args.id)
    if not ids:
        print("At least one project user id is required!")
        return False

    options = build_options(args)
    if not options:
        print("Nothing to update! Use -m and/or -r.")
        return False

    fields = parse_id_list(args.fields) if args.fields else None

    if len(ids) == 1:
        resp = toggl.update_project_user(ids[0], wid, options, fields)
    else:
        resp = toggl.update_project_users(ids, wid, options, fields)

    logger.debug(json_format(resp))
    print("Updated project users %s" % join_ids(ids))
    return True

def delete_project_users(args):
    wid = get_workspace(args)
    if wid is None:
        print("-w is required when removing project users")
        return False

    ids = parse_id_list(args.id)
    if not ids:
        print("At least one project user id is required!")
        return False

    print("Deleting project users %s" % join_ids(ids))

    if len(ids) == 1:
        toggl.delete_project_user(ids[0], wid)
    else:
        toggl.delete_project_users(ids, wid)

    return True

def create_default_cfg(path):
    cfg = configparser.RawConfigParser()
    cfg.add_section('auth')
    cfg.set('auth', 'api_token', '')
    cfg.set('auth', 'username', 'user@example.com')
    cfg.set('auth', 'password', 'secretpasswd')
    cfg.add_section('options')
    cfg.set('options', 'timezone', 'UTC')
    cfg.set('options', 'entry_datefmt', DEFAULT_ENTRY_DATEFMT)
    with open(path, 'w') as cfgfile:
        cfg.write(cfgfile)

def get_auth(cfg):
    """API token auth when a token is configured, else username/password."""
    if cfg.has_option('auth', 'api_token'):
        token = cfg.get('auth', 'api_token').strip()
        if token:
            return (token, 'api_token')
    return (cfg.get('auth', 'username').strip(), cfg.get('auth', 'password').strip())

def load_cfg(path):
    cfg = configparser.ConfigParser(interpolation=None)
    cfg.optionxform = lambda option: option
    if cfg.read(path) == []:
        return None
    return cfg

def build_parser():
    parser = argparse.ArgumentParser(prog='togglpu')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
    parser.add_argument('--config', help='Configuration file', default=DEFAULT_CFG_PATH)

    subparsers = parser.add_subparsers(help='sub-command help', dest='command')
    subparsers.required = True

    parser_ls = subparsers.add_parser('ls', help='List project users')
    parser_ls.add_argument('-w', '--workspace', help='The workspace id', default=None)
    parser_ls.add_argument('-p', '--proj', help='Only list users of this project id', default=None)
    parser_ls.add_argument('-l', '--verbose-list', help='Show verbose output', action='store_true', default=False)
    parser_ls.set_defaults(func=list_project_users)

    parser_add = subparsers.add_parser('add', help='Add users to a project')
    parser_add.add_argument('-w', '--workspace', help='The workspace id', default=None)
    parser_add.add_argument('-p', '--proj', help='The project id', required=True)
    parser_add.add_argument('-u', '--users', help='User id(s) to add', required=True, metavar='IDLIST')
    parser_add.add_argument('-m', '--manager', help='Make the users project managers', action='store_true', default=None)
    parser_add.add_argument('-r', '--rate', help='Hourly rate for the users', type=float, default=None)
    parser_add.add_argument('-f', '--fields', help='User fields to return', default=None, metavar='FIELDLIST')
    parser_add.set_defaults(func=add_project_users)

    parser_update = subparsers.add_parser('update', help='Update project users')
    parser_update.add_argument('-w', '--workspace', help='The workspace id', default=None)
    parser_update.add_argument('-i', '--id', help='Project user id(s) to update', required=True, metavar='IDLIST')
    parser_update.add_argument('-m', '--manager', help="Set the manager flag", type=parse_bool, default=None)
    parser_update.add_argument('-r', '--rate', help='Set the hourly rate', type=float, default=None)
    parser_update.add_argument('-f', '--fields', help='User fields to return', default=None, metavar='FIELDLIST')
    parser_update.set_defaults(func=update_project_users)

    parser_rm = subparsers.add_parser('rm', help='Remove project users')
    parser_rm.add_argument('-w', '--workspace', help='The workspace id', default=None)
    parser_rm.add_argument('-i', '--id', help='Project user id(s) to remove', required=True, metavar='IDLIST')
    parser_rm.set_defaults(func=delete_project_users)

    return parser

def main(argv=None):
    """Program entry point."""

    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s')

    global toggl_cfg
    cfg_path = os.path.expanduser(args.config)
    toggl_cfg = load_cfg(cfg_path)
    if toggl_cfg is None:
        create_default_cfg(cfg_path)
        print("Missing %s. A default has been created for editing." % cfg_path)
        return 1

    global toggl
    toggl = TogglApi(TOGGL_URL, get_auth(toggl_cfg), verbose=args.verbose)

    try:
        ok = args.func(args)
    except requests.HTTPError as e:
        print("Request failed: %s" % e)
        return 1

    if ok:
        return 0
    else:
        return 1

if __name__ == "__main__":
    sys.exit(main())

# vim: set ts=4 sw=4 tw=0 :
