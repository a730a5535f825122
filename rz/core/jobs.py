"""同步任务构建

把配置中的插件声明转换为 SyncJob 列表，同时计算清理阶段使用的
期望链接名集合与期望仓库标识符集合。
"""

import shutil
from typing import Callable, Iterable, List, Optional

from rz.core.data_structures import JobPlan, SourceSpec, SyncJob
from rz.core.logger import get_logger
from rz.core.paths import RZPaths

logger = get_logger("jobs")

GITHUB_URL = "https://github.com/{repo}.git"


def remote_url(spec: SourceSpec) -> str:
    """github 简写展开为 https 地址，其他 source 原样作为地址使用"""
    if spec.is_github:
        return GITHUB_URL.format(repo=spec.repo.strip())
    return spec.source


def missing_tools(
    spec: SourceSpec,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> List[str]:
    """返回 requires 中在 PATH 上找不到的可执行文件"""
    return [tool for tool in spec.requires if which(tool) is None]


def build_jobs(
    specs: Iterable[SourceSpec],
    paths: RZPaths,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> JobPlan:
    """根据插件声明构建同步任务

    - repo 为空的声明被忽略
    - requires 中有缺失工具的声明被跳过（记录警告）
    - 每个生成的任务都会加入两个期望集合

    Args:
        specs: 插件声明（保持配置顺序）
        paths: 目录布局
        which: 可执行文件查找函数，默认 shutil.which

    Returns:
        JobPlan
    """
    plan = JobPlan()

    for spec in specs:
        if not spec.repo.strip():
            continue

        missing = missing_tools(spec, which)
        if missing:
            logger.warning(
                "Skipping plugin with missing tools",
                plugin=spec.display,
                missing=missing,
            )
            plan.skipped.append((spec, missing))
            continue

        slug = spec.slug
        link_name = spec.name or slug

        plan.jobs.append(SyncJob(
            display=spec.display,
            url=remote_url(spec),
            repo_dir=paths.repos / slug,
            link_path=paths.plugins / link_name,
            role=spec.role,
            file_hint=spec.file,
            rev=spec.rev,
        ))
        plan.expected_links.add(link_name)
        plan.expected_repos.add(slug)

    logger.info(
        "Sync jobs built",
        jobs=len(plan.jobs),
        skipped=len(plan.skipped),
    )
    return plan
