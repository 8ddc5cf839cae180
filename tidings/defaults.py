"""Built-in default configuration."""

DEFAULT_CONFIG = r"""# tidings configuration
# Templates use Jinja2 syntax: https://jinja.palletsprojects.com/

[remote.github]
# owner = "octocat"
# repo = "hello-world"

[changelog]
# changelog header
header = '''
# Changelog
'''
# template for each release
body = '''
{% macro remote_url() -%}
https://github.com/{{ remote.github.owner }}/{{ remote.github.repo }}
{%- endmacro %}
## What's Changed{% if version %} in {{ version }}{% endif %}


{% for commit in commits %}
- {{ (commit.remote.pr_title or commit.description or commit.message) | split(pat="\n") | first | trim }}
{%- if commit.remote.pr_number and remote.github.owner %} [#{{ commit.remote.pr_number }}]({{ remote_url() }}/pull/{{ commit.remote.pr_number }})
{%- if commit.remote.username %} (@{{ commit.remote.username }}){% endif %}
{%- endif %}

{% endfor %}
{% set new_contributors = github.contributors | filter(attribute="is_first_time", value=true) %}
{% if new_contributors %}

### New Contributors

{% for contributor in new_contributors %}
* @{{ contributor.username }} made their first contribution
{%- if contributor.pr_number and remote.github.owner %} in [#{{ contributor.pr_number }}]({{ remote_url() }}/pull/{{ contributor.pr_number }}){% endif %}

{% endfor %}
{% endif %}
{% if version and previous.version and remote.github.owner %}

**Full Changelog**: {{ remote_url() }}/compare/{{ previous.version }}...{{ version }}
{% endif %}
'''
# strip whitespace around template tags and each rendered part
trim = true
# changelog footer
footer = ""
# regex substitutions applied to the whole document
postprocessors = []

[git]
# parse the commits based on https://www.conventionalcommits.org
conventional_commits = false
# filter out the commits that are not conventional
filter_unconventional = true
# process each line of a commit as an individual commit
split_commits = false
# regex for preprocessing the commit messages
commit_preprocessors = [
    { pattern = '\((\w+\s)?#([0-9]+)\)', replace = "" },
]
# regex for parsing and grouping commits
commit_parsers = []
# protect breaking changes from being skipped
protect_breaking_commits = false
# filter out the commits that are not matched by commit parsers
filter_commits = false
# glob pattern for matching git tags
tag_pattern = "v[0-9]*"
# regex for skipping tags
skip_tags = ""
# regex for ignoring tags
ignore_tags = ""
# sort the tags topologically
topo_order = false
# sort the commits inside releases by oldest/newest order
sort_commits = "newest"
# limit the number of commits included in the changelog
# limit_commits = 42
"""
