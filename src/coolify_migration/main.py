import re
import sys
import argparse

from coolify_migration import console
from coolify_migration.checkpoint import MigrationState
from coolify_migration.config import load_config
from coolify_migration.errors import MigrationError
from coolify_migration.migration import run_migration

YES_PATTERN = re.compile(r'^[Yy]$')


def build_parser():
    parser = argparse.ArgumentParser(
        description='Back up a Coolify instance and move it to a new server over SSH')
    parser.add_argument('--config', help='YAML file with migration settings')
    parser.add_argument('--host', dest='destination_host', help='Destination server address')
    parser.add_argument('--port', dest='ssh_port', help='SSH port of the destination server')
    parser.add_argument('--user', dest='ssh_user', help='SSH user on the destination server')
    parser.add_argument('--key', dest='ssh_key_path', help='Private key for the destination server')
    parser.add_argument('--source-dir', dest='source_dir', help='Coolify data directory to migrate')
    parser.add_argument('--backup-file', dest='backup_file', help='Name of the local backup archive')

    parser.add_argument('--stop-docker', dest='stop_docker_before_backup', action='store_const', const=True,
                      help='Stop Docker before creating the backup')
    parser.add_argument('--no-stop-docker', dest='stop_docker_before_backup', action='store_const', const=False,
                      help='Keep Docker running while creating the backup')
    parser.add_argument('--remove-backup', dest='remove_local_backup', action='store_const', const=True,
                      help='Delete the local backup after a successful transfer')
    parser.add_argument('--keep-backup', dest='remove_local_backup', action='store_const', const=False,
                      help='Keep the local backup after a successful transfer')

    parser.add_argument('--force-new-archive', dest='force_new_archive', action='store_const', const=True,
                      help='Rebuild the backup archive even if one already exists')
    parser.add_argument('--fetch-installer-locally', dest='fetch_installer_locally', action='store_const',
                      const=True, help='Download the Coolify installer here and pipe it to the destination')
    parser.add_argument('--fresh', action='store_true',
                      help='Forget remote steps completed by an earlier run')
    parser.add_argument('--no-prompt', action='store_true', help='Do not prompt for user input')
    return parser


def ask_yes_no(question, input_func=input):
    print(f"{question} (y/n)")
    answer = input_func("Answer: ")
    return bool(YES_PATTERN.match(answer.strip()))


QUESTIONS = {
    'stop_docker_before_backup': (
        f"{console.WARNING} It's recommended to stop all Docker containers before creating the "
        "backup. Do you want to stop Docker?"),
    'remove_local_backup': "Do you want to remove the local backup file?",
}


def prompt_decider(no_prompt=False, input_func=input):
    """
    Build the decide() callback handed to run_migration

    run_migration calls it only at the point a decision is needed, so the
    stop-Docker question follows preflight and the cleanup question follows a
    successful transfer. With no_prompt every open decision is no.
    """
    def decide(decision):
        if no_prompt:
            return False
        return ask_yes_no(QUESTIONS[decision], input_func)
    return decide


def main(argv=None, input_func=input):
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {
        key: value for key, value in vars(args).items()
        if key not in ('config', 'fresh', 'no_prompt')
    }

    try:
        config = load_config(args.config, overrides=overrides)
        if args.fresh:
            MigrationState(config.state_file, config.destination_host).reset()
        run_migration(config, decide=prompt_decider(args.no_prompt, input_func))
    except MigrationError as e:
        console.failure(str(e))
        return 1
    except KeyboardInterrupt:
        console.failure("Interrupted")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
