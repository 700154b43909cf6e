"""
Operational Script Templates

Jinja2 sources for every script Harp renders. Fragments (sync_files,
kill_server, restart_server) are rendered first and then embedded in the
persisted scripts. Custom deploy/restart scripts from the configuration
receive the same variables, plus save_release, which is always empty:
the prior release is archived before the upload, not inside the script.
"""

SYNC_FILES = """\
mkdir -p {{ runtime_root }}/bin {{ runtime_root }}/src {{ runtime_root }}/src/{{ app.import_path }}
{% for entry in files %}
mkdir -p "{{ entry.destination_parent }}"
rsync -az{% if entry.delete %} --delete{% endif %} "{{ entry.source }}" "{{ entry.destination }}"
{% endfor %}
cp {{ layout.build_info }} {{ runtime_root }}/src/{{ app.import_path }}/
rsync -az {{ layout.artifact }} {{ runtime_root }}/bin/{{ app.name }}
"""

KILL_SERVER = """\
if [[ -f {{ layout.pid_file }} ]]; then
	target=$(cat {{ layout.pid_file }})
	if ps -p $target > /dev/null 2>&1; then
		kill -{{ app.kill_signal }} $target > /dev/null 2>&1 || true
	fi
fi
"""

RESTART_SERVER = """\
{{ kill_server }}
mkdir -p {{ layout.log_dir }}
touch {{ layout.log_file }}
cd {{ runtime_root }}/src/{{ app.import_path }}
{% for key, value in envs %}{{ key }}="{{ value | dq }}" {% endfor %}nohup {{ runtime_root }}/bin/{{ app.name }}{% for arg in app.args %} {{ arg }}{% endfor %} >> {{ layout.log_file }} 2>&1 < /dev/null &
echo $! > {{ layout.pid_file }}
cd {{ home }}
"""

SAVE_RELEASE = """\
if [[ -f {{ layout.build_info }} && ! -d {{ release_dir }} ]]; then
	mkdir -p {{ release_dir }}
	for item in {{ archived | join(" ") }}; do
		if [[ -e {{ layout.app_dir }}/$item ]]; then
			cp -rf {{ layout.app_dir }}/$item {{ release_dir }}/
		fi
	done
fi
"""

DEFAULT_DEPLOY = """\
set -e
{{ sync_files }}
{{ restart_server }}
"""

DEFAULT_RESTART = """\
set -e
{{ restart_server }}
"""

KILL = """\
set -e
{{ kill_server }}
"""

ROLLBACK = """\
set -e
version=$1
if [[ -z "$version" ]]; then
	echo "please specify version in the following list to rollback:"
	ls -1 {{ layout.releases_dir }} 2> /dev/null || true
	exit 1
fi
if [[ ! -d {{ layout.releases_dir }}/$version ]]; then
	echo "release $version not found under {{ layout.releases_dir }}"
	exit 1
fi

for file in $(ls {{ layout.releases_dir }}/$version); do
	rm -rf {{ layout.app_dir }}/$file
	cp -rf {{ layout.releases_dir }}/$version/$file {{ layout.app_dir }}/$file
done

{{ sync_files }}

{{ restart_server }}
"""
