"""RZ 异常体系"""


class RZException(Exception):
    """基础异常类"""
    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


# 配置相关异常
class ConfigError(RZException):
    """配置异常"""
    pass


class ConfigNotFoundError(ConfigError):
    """配置文件不存在"""
    pass


class ConfigParseError(ConfigError):
    """配置解析失败"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证失败"""
    pass


# Git 操作异常
class GitException(RZException):
    """Git 操作异常"""
    pass


class GitCommandError(GitException):
    """Git 命令执行失败"""
    pass


class RevisionNotFound(GitException):
    """无法解析的版本（分支、标签或提交）"""
    pass


class NoDefaultBranch(GitException):
    """远程没有可用的默认分支"""
    pass


# 网络异常（clone / fetch / 下载）
class NetworkError(RZException):
    """网络操作失败"""
    pass


# 链接相关异常
class LinkException(RZException):
    """插件链接异常"""
    pass


class NoSourceFileFound(LinkException):
    """仓库中找不到可加载的插件文件"""
    pass


# 文件系统异常
class FilesystemError(RZException):
    """文件系统操作失败（权限、IO）"""
    pass


class SymlinkCreationError(FilesystemError):
    """符号链接创建失败"""
    pass


# 自升级异常
class UpgradeException(RZException):
    """自升级异常"""
    pass


class UnsupportedPlatformError(UpgradeException):
    """当前平台没有对应的发布包"""
    pass


class ReleaseAssetNotFound(UpgradeException):
    """发布中没有可用的资源文件"""
    pass


class ArchiveFormatError(UpgradeException):
    """压缩包中缺少目标可执行文件"""
    pass
