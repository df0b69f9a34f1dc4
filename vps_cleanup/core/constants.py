"""Path, package and policy constants for vps-cleanup."""

# Host identification
OS_RELEASE = "/etc/os-release"
REDHAT_RELEASE = "/etc/redhat-release"
PROC_MOUNTS = "/proc/mounts"
PROC_SWAPS = "/proc/swaps"

DEFAULT_KEEP_LOCALES = ("en", "en_US")
USER_CACHE_DAYS = 1

# Journald retention policy (fixed)
JOURNAL_MAX_AGE = "1day"
JOURNAL_MAX_SIZE = "1M"
JOURNAL_MAX_FILE = "1M"
JOURNALD_DROPIN = "/etc/systemd/journald.conf.d/cleanup.conf"

# Plain-text logs
VAR_LOG = "/var/log"
LOG_TRIM_BYTES = 1024 * 1024
COMPRESSED_LOG_SUFFIXES = (".gz", ".xz", ".zst")

# Locales
LOCALE_GEN = "/etc/locale.gen"
I18N_SUPPORTED = "/usr/share/i18n/SUPPORTED"
LOCALE_DIR = "/usr/share/locale"

DEV_PKGS_APT = [
    "build-essential", "gcc", "g++", "make", "cmake", "ninja-build",
    "git", "git-lfs", "subversion", "mercurial",
    "pkg-config", "autoconf", "automake", "libtool",
    "clang", "llvm", "lldb", "lld",
    "gdb", "strace", "ltrace", "valgrind",
    "dkms", "manpages-dev", "man-db",
    "python3-dev", "python3-venv",
    "nodejs", "npm", "yarn",
    "golang-go", "cargo", "rustc", "ruby-dev", "gem",
]

DEV_PKGS_RPM = [
    "gcc", "gcc-c++", "make", "cmake", "ninja-build",
    "git", "git-lfs", "subversion", "mercurial",
    "pkgconfig", "autoconf", "automake", "libtool",
    "clang", "llvm", "lldb", "lld",
    "gdb", "strace", "ltrace", "valgrind",
    "dkms", "man-db", "man-pages",
    "python3-devel", "python3-virtualenv",
    "nodejs", "npm",
    "golang", "cargo", "rust", "ruby-devel", "rubygems",
    "kernel-devel", "kernel-headers",
]

RPM_DEV_GROUP = "Development Tools"

# Per-home cache paths, relative to the home directory
HOME_CACHE_PATHS = [
    ".cache/pip",
    ".cache/pip-tools",
    ".npm",
    ".cache/yarn",
    ".yarn",
    ".cargo/registry",
    ".cargo/git",
    "go/pkg/mod",
    ".cache/go-build",
    ".gem",
    ".config/Code/Cache",
    ".config/Code/CachedData",
    ".config/Code/Service Worker/CacheStorage",
]

# Swap
SWAPFILE = "/swapfile"
FSTAB = "/etc/fstab"

# DNS resolution precedence
GAI_CONF = "/etc/gai.conf"
GAI_PRECEDENCE_LINE = "precedence ::ffff:0:0/96  100"

# Snap
SNAP_SERVICES = ["snapd.service", "snapd.socket", "snapd.seeded.service", "snapd.snap-repair.service"]
SNAP_MASK_SERVICES = ["snapd.service", "snapd.socket"]
SNAP_LXD_SERVICE = "snap.lxd.daemon"
SNAP_INFLIGHT_STATUSES = frozenset({"Do", "Doing", "Pending", "Wait"})
SNAP_HOLD_DAYS = 7
SNAP_DIRS = ["/snap", "/var/snap", "/var/lib/snapd", "/var/cache/snapd"]
SNAP_WAIT_SECONDS = 60
SNAP_POLL_SECONDS = 5

# Cloud-init
CLOUD_INIT_SERVICES = ["cloud-init", "cloud-config", "cloud-final", "cloud-init-local"]
CLOUD_INIT_PKGS_APT = ["cloud-init", "cloud-initramfs-copymods", "cloud-initramfs-dyn-netconf"]
CLOUD_INIT_PKGS_RPM = ["cloud-init", "cloud-utils-growpart"]
CLOUD_INIT_NETCFG_APT = "/etc/netplan/50-cloud-init.yaml"
CLOUD_INIT_NETCFG_RPM = "/etc/sysconfig/network-scripts/ifcfg-eth0"
CLOUD_INIT_PATHS = ["/var/lib/cloud", "/var/log/cloud-init.log", "/var/log/cloud-init-output.log", "/etc/cloud"]

# Kernels
MODULES_DIR = "/usr/lib/modules"
SRC_DIR = "/usr/src"
APT_KERNEL_META = (
    "linux-image-generic", "linux-image-virtual", "linux-image-aws", "linux-image-kvm",
    "linux-virtual", "linux-generic", "linux-aws", "grub-",
)
APT_KERNEL_FLAVOURS = ("-generic", "-aws", "-virtual", "-kvm")
RPM_KERNEL_PREFIXES = ["kernel", "kernel-core", "kernel-modules", "kernel-modules-extra", "kernel-devel", "kernel-headers"]
RPM_GRUB_CONFIGS = [
    "/boot/grub2/grub.cfg",
    "/boot/efi/EFI/almalinux/grub.cfg",
    "/boot/efi/EFI/centos/grub.cfg",
    "/boot/efi/EFI/rocky/grub.cfg",
    "/boot/efi/EFI/redhat/grub.cfg",
]

# Final sweep
TMP_DIRS = ["/tmp", "/var/tmp"]
CRASH_DIRS = ["/var/lib/systemd/coredump", "/var/crash"]

# Disk report
REPORT_DIRS = ["/usr/lib/modules", "/usr/src", "/var/log", "/var/cache"]
